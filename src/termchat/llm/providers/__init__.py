from .local import LocalServerProvider

__all__ = ["LocalServerProvider"]

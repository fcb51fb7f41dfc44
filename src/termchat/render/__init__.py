"""Terminal rendering of assistant replies."""

from .models import BlockKind, RenderedBlock
from .renderer import partition, render, render_text

__all__ = [
    "BlockKind",
    "RenderedBlock",
    "partition",
    "render",
    "render_text",
]

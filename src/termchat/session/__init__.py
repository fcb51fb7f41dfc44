"""Interactive chat session for termchat."""

from .loop import ChatSession
from .models import Command, LoopSignal, SessionContext, SessionState, parse_command

__all__ = [
    "ChatSession",
    "Command",
    "LoopSignal",
    "SessionContext",
    "SessionState",
    "parse_command",
]

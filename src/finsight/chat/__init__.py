"""Financial assistant chat module."""
from .models import Sender, ChatMessage, ChatSession
from .orchestrator import ChatOrchestrator, ChatState, ChatTurn, TurnOutcome

__all__ = [
    "Sender",
    "ChatMessage",
    "ChatSession",
    "ChatOrchestrator",
    "ChatState",
    "ChatTurn",
    "TurnOutcome",
]

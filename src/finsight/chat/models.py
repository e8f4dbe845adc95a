"""Chat message and session models."""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class Sender(Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    """One immutable transcript entry."""
    sender: Sender
    content: str
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def role(self) -> str:
        """API role name for this message."""
        return self.sender.value

    def to_api_message(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class ChatSession:
    """Conversation state for one chat window; the transcript is append-only."""

    def __init__(self, session_id: Optional[str] = None):
        self.id = session_id or str(uuid.uuid4())
        self.created_at = datetime.now()
        self.last_updated = self.created_at
        self._transcript: List[ChatMessage] = []

    @property
    def transcript(self) -> List[ChatMessage]:
        """Snapshot of the transcript in append order."""
        return list(self._transcript)

    def __len__(self) -> int:
        return len(self._transcript)

    def add_message(self, message: ChatMessage) -> ChatMessage:
        self._transcript.append(message)
        self.last_updated = datetime.now()
        return message

    def add_user_message(self, content: str) -> ChatMessage:
        return self.add_message(ChatMessage(Sender.USER, content))

    def add_assistant_message(self, content: str) -> ChatMessage:
        return self.add_message(ChatMessage(Sender.ASSISTANT, content))

    def conversation_history(self) -> List[Dict[str, str]]:
        """Transcript mapped to API messages, oldest first."""
        return [message.to_api_message() for message in self._transcript]

    def clear(self) -> None:
        """Drop all messages; id and creation time are kept."""
        self._transcript = []
        self.last_updated = datetime.now()

    def __repr__(self) -> str:
        return (
            f"ChatSession(id={self.id!r}, created_at={self.created_at.isoformat()}, "
            f"last_updated={self.last_updated.isoformat()}, messages={len(self._transcript)})"
        )

"""Chat schemas for the conversational advisor."""

from enum import Enum
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field


class ChatRole(str, Enum):
    """Author of a chat turn."""

    USER = "user"
    MODEL = "model"


class ChatTurn(BaseModel):
    """A single message in the conversation."""

    model_config = ConfigDict(frozen=True)

    role: ChatRole
    text: str


# Transcripts are immutable; appending builds a new tuple.
Transcript = Tuple[ChatTurn, ...]


def append_turn(transcript: Transcript, role: ChatRole, text: str) -> Transcript:
    """Return ``transcript`` with one more turn at the end."""
    return (*transcript, ChatTurn(role=role, text=text))


class ChatMessageRequest(BaseModel):
    """Request body for sending a chat message."""

    message: str = Field(..., min_length=1, max_length=2000, description="User message")

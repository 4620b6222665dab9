# conceptmap/models/conversation.py
from __future__ import annotations
from pydantic import BaseModel, Field, RootModel, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import uuid

from .graph import KnowledgeGraph


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Imported files may carry naive timestamps; those are read as UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ChatMessage(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role: str
    content: Any
    createdAt: Optional[datetime] = Field(default_factory=_now)

    @field_validator("createdAt")
    @classmethod
    def created_as_utc(cls, value):
        return _as_utc(value)


class Conversation(BaseModel):
    id: str
    title: str = "New Chat"
    messages: List[ChatMessage] = Field(default_factory=list)
    createdAt: datetime = Field(default_factory=_now)
    graphData: Optional[KnowledgeGraph] = None

    @field_validator("createdAt")
    @classmethod
    def created_as_utc(cls, value):
        return _as_utc(value)

    def last_activity(self) -> datetime:
        """Time of the last message, falling back to creation time."""
        if self.messages and self.messages[-1].createdAt is not None:
            return self.messages[-1].createdAt
        return self.createdAt


class ConversationMap(RootModel[Dict[str, Conversation]]):
    """The persisted state document: conversation id -> conversation."""

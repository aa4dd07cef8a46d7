"""
Pydantic model for a Message.
"""
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Message(BaseModel):
    """
    Represents a single message in a conversation.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    conversation_id: str
    sender: str
    content: str
    timestamp: datetime

    @classmethod
    def create(cls, sender: str, content: str, conversation_id: Optional[str] = None) -> "Message":
        """Build a new message stamped with a fresh id and the current time."""
        return cls(
            id=str(uuid.uuid4()),
            conversation_id=conversation_id or str(uuid.uuid4()),
            sender=sender,
            content=content,
            timestamp=datetime.now(),
        )

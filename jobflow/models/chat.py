"""Chat transcript models. Never persisted."""

from datetime import datetime
from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field

from .job import new_id, utc_now


class ChatRole(str, Enum):
    USER = "user"
    MODEL = "model"


class ChatMessage(BaseModel):
    """One line of the coach chat transcript."""
    id: str = Field(default_factory=new_id)
    role: ChatRole
    text: str
    timestamp: datetime = Field(default_factory=utc_now)

    @property
    def time_label(self) -> str:
        return self.timestamp.strftime("%H:%M")

    def to_dict(self) -> Dict:
        return self.model_dump(mode='json')

"""User profile related data models."""

from typing import Dict, Any

from pydantic import BaseModel, Field


class UserProfile(BaseModel):
    """Represents the user's profile used to seed AI prompts."""
    full_name: str = Field(default="", alias="fullName")
    skills: str = ""

    class Config:
        populate_by_name = True

    @property
    def first_name(self) -> str:
        parts = self.full_name.split()
        return parts[0] if parts else ""

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True)

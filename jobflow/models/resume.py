"""Resume related data models."""

from enum import Enum
from typing import List, Dict, Any

from pydantic import BaseModel, Field

from .job import new_id


class SectionKind(str, Enum):
    """Resume lists made of ``Section`` records."""
    EXPERIENCE = "experience"
    EDUCATION = "education"


class Section(BaseModel):
    """A single experience or education entry."""
    id: str = Field(default_factory=new_id)
    title: str = ""
    subtitle: str = ""  # Company or school
    date: str = ""
    content: str = ""  # Description or bullet points


class Project(BaseModel):
    """A portfolio project entry."""
    id: str = Field(default_factory=new_id)
    name: str = ""
    description: str = ""
    tech: List[str] = Field(default_factory=list)


class Resume(BaseModel):
    """The structured resume rendered as a printable CV."""
    full_name: str = Field(default="", alias="fullName")
    title: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    summary: str = ""
    experience: List[Section] = Field(default_factory=list)
    education: List[Section] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)
    skills: str = ""  # Comma separated
    avatar: str = ""  # Data URL or plain URL

    class Config:
        populate_by_name = True

    def skill_list(self) -> List[str]:
        """Skills split on commas, trimmed, without empties."""
        return [skill.strip() for skill in self.skills.split(",") if skill.strip()]

    def sections(self, kind: SectionKind) -> List[Section]:
        return self.experience if kind == SectionKind.EXPERIENCE else self.education

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the stored (camelCase) representation."""
        return self.model_dump(mode='json', by_alias=True)

"""
Resume state, mirrored to local storage.
"""

from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from jobflow.models import Resume, Section, SectionKind, Project, new_id
from jobflow.services.storage_service import JsonStorage, RESUME_KEY
from jobflow.utils.logger import get_logger

logger = get_logger(__name__)


def default_resume() -> Resume:
    """Sample resume shown on first start."""
    return Resume(
        full_name="Alex Developer",
        title="Senior Frontend Engineer",
        email="alex.dev@example.com",
        phone="(555) 123-4567",
        location="San Francisco, CA",
        summary=(
            "Passionate Frontend Engineer with 5+ years of experience building responsive, "
            "accessible, and performant web applications using React, TypeScript, and modern "
            "UI frameworks."
        ),
        avatar="",
        skills="React, TypeScript, Tailwind CSS, Node.js, Next.js, GraphQL, AWS, UI/UX Design",
        experience=[
            Section(
                id="1",
                title="Senior Frontend Developer",
                subtitle="TechNova Inc.",
                date="2021 - Present",
                content=(
                    "• Led the migration of a legacy jQuery app to React 18, improving load time by 40%.\n"
                    "• Mentored 3 junior developers and established code review standards.\n"
                    "• Implemented a design system used across 4 internal products."
                ),
            )
        ],
        education=[
            Section(
                id="1",
                title="BS Computer Science",
                subtitle="University of Technology",
                date="2016 - 2020",
                content="Graduated Cum Laude. President of the Web Development Club.",
            )
        ],
        projects=[],
    )


def _section_kind(kind: Union[SectionKind, str]) -> SectionKind:
    try:
        return SectionKind(kind)
    except ValueError:
        raise ValueError(f"Unknown resume section: {kind!r}")


class ResumeStore:
    """Holds the resume singleton."""

    def __init__(self, storage: JsonStorage):
        """
        Initialize the store, reading the saved resume once.

        Args:
            storage: Local key-value storage
        """
        self.storage = storage
        self.resume: Resume = self._load()

    def _load(self) -> Resume:
        saved = self.storage.get(RESUME_KEY)
        if saved is None:
            return default_resume()
        try:
            return Resume.model_validate(saved)
        except ValidationError as e:
            logger.warning(f"⚠️ Invalid saved resume, using default: {e}")
            return default_resume()

    def _replace(self, resume: Resume) -> Resume:
        self.resume = resume
        self.storage.set(RESUME_KEY, resume.to_dict())
        return resume

    def update_resume(self, changes: Mapping[str, Any]) -> Resume:
        """
        Shallow-merge top level fields into the resume.

        Raises:
            ValidationError: If the merged resume is invalid; nothing is saved
        """
        merged = {**self.resume.model_dump(by_alias=True), **_by_alias(changes)}
        updated = Resume.model_validate(merged)
        logger.debug(f"Resume fields updated: {', '.join(changes)}")
        return self._replace(updated)

    def add_section(self, kind: Union[SectionKind, str]) -> Section:
        """Append a placeholder entry to experience or education."""
        kind = _section_kind(kind)
        section = Section(
            id=new_id(),
            title="New Role",
            subtitle="Company/School",
            date="Date Range",
            content="Description...",
        )
        items = self.resume.sections(kind) + [section]
        self._replace(self.resume.model_copy(update={kind.value: items}))
        return section

    def update_section(
        self,
        kind: Union[SectionKind, str],
        section_id: str,
        changes: Mapping[str, Any]
    ) -> Optional[Section]:
        kind = _section_kind(kind)
        updated: Optional[Section] = None
        items: List[Section] = []
        for item in self.resume.sections(kind):
            if item.id == section_id:
                updated = Section.model_validate({**item.model_dump(), **dict(changes), "id": item.id})
                items.append(updated)
            else:
                items.append(item)
        if updated is None:
            logger.warning(f"⚠️ No {kind.value} entry with id {section_id}")
            return None
        self._replace(self.resume.model_copy(update={kind.value: items}))
        return updated

    def remove_section(self, kind: Union[SectionKind, str], section_id: str) -> bool:
        kind = _section_kind(kind)
        current = self.resume.sections(kind)
        items = [item for item in current if item.id != section_id]
        if len(items) == len(current):
            return False
        self._replace(self.resume.model_copy(update={kind.value: items}))
        return True

    def add_project(self) -> Project:
        project = Project(id=new_id(), name="Project Name", description="Description...", tech=["React"])
        self._replace(self.resume.model_copy(update={"projects": self.resume.projects + [project]}))
        return project

    def update_project(self, project_id: str, changes: Mapping[str, Any]) -> Optional[Project]:
        updated: Optional[Project] = None
        projects: List[Project] = []
        for item in self.resume.projects:
            if item.id == project_id:
                updated = Project.model_validate({**item.model_dump(), **dict(changes), "id": item.id})
                projects.append(updated)
            else:
                projects.append(item)
        if updated is None:
            return None
        self._replace(self.resume.model_copy(update={"projects": projects}))
        return updated

    def remove_project(self, project_id: str) -> bool:
        projects = [item for item in self.resume.projects if item.id != project_id]
        if len(projects) == len(self.resume.projects):
            return False
        self._replace(self.resume.model_copy(update={"projects": projects}))
        return True

    def apply_parsed_resume(self, parsed: Mapping[str, Any]) -> Resume:
        """
        Merge AI-extracted resume data, giving every list item a fresh id.

        Args:
            parsed: Extracted fields (see ``AIService.parse_resume_image``)

        Returns:
            The merged resume
        """
        changes: Dict[str, Any] = {
            key: value for key, value in parsed.items()
            if key not in ("experience", "education", "projects") and value is not None
        }
        for key in ("experience", "education", "projects"):
            changes[key] = [{**item, "id": new_id()} for item in parsed.get(key) or []]

        logger.info(f"📄 Importing parsed resume: {len(changes['experience'])} experience, "
                    f"{len(changes['education'])} education, {len(changes['projects'])} projects")
        return self.update_resume(changes)


def _by_alias(changes: Mapping[str, Any]) -> Dict[str, Any]:
    """Map field names (``full_name``) to stored aliases (``fullName``)."""
    aliases = {name: info.alias for name, info in Resume.model_fields.items() if info.alias}
    return {aliases.get(key, key): value for key, value in changes.items()}

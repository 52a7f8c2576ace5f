"""
DOCX rendering of the resume for download and printing.
Handles font families, sizes, colors, bold, italic, alignment, spacing.
"""

import base64
import binascii
from io import BytesIO
from typing import Optional

from docx import Document
from docx.image.exceptions import UnrecognizedImageError
from docx.shared import Pt, RGBColor, Inches
from docx.enum.text import WD_ALIGN_PARAGRAPH

from jobflow.models import Resume, Section
from jobflow.utils.file_utils import strip_data_url
from jobflow.utils.logger import get_logger

logger = get_logger(__name__)

ACCENT_COLOR = RGBColor(0x05, 0x96, 0x69)
MUTED_COLOR = RGBColor(0x64, 0x74, 0x8B)
BODY_FONT = "Calibri"


class DocxFormatter:
    """Build a Word document from a ``Resume``."""

    def __init__(self, font_name: str = BODY_FONT, font_size: int = 10):
        self.font_name = font_name
        self.font_size = font_size

    def build(self, resume: Resume) -> Document:
        """
        Render the resume the same way the live preview lays it out:
        header, summary, experience, education, skills.

        Args:
            resume: Resume to render

        Returns:
            python-docx Document
        """
        doc = Document()
        normal = doc.styles['Normal']
        normal.font.name = self.font_name
        normal.font.size = Pt(self.font_size)

        self._add_header(doc, resume)

        if resume.summary:
            self._add_heading(doc, "Professional Summary")
            self._add_body(doc, resume.summary)

        if resume.experience:
            self._add_heading(doc, "Experience")
            for item in resume.experience:
                self._add_section_item(doc, item)

        if resume.education:
            self._add_heading(doc, "Education")
            for item in resume.education:
                self._add_section_item(doc, item)

        skills = resume.skill_list()
        if skills:
            self._add_heading(doc, "Skills")
            self._add_body(doc, " • ".join(skills))

        logger.debug(f"Rendered resume for {resume.full_name or 'unnamed'} "
                     f"({len(resume.experience)} experience, {len(resume.education)} education)")
        return doc

    def to_bytes(self, resume: Resume) -> bytes:
        """Render and serialise the resume to DOCX bytes."""
        buffer = BytesIO()
        self.build(resume).save(buffer)
        return buffer.getvalue()

    def _add_header(self, doc: Document, resume: Resume) -> None:
        picture = self._decode_avatar(resume.avatar)
        if picture is not None:
            try:
                doc.add_picture(picture, width=Inches(1.1))
                doc.paragraphs[-1].alignment = WD_ALIGN_PARAGRAPH.CENTER
            except UnrecognizedImageError:
                logger.warning("⚠️ Avatar is not a recognised image, leaving it out of the export")

        name = doc.add_paragraph()
        name.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = name.add_run(resume.full_name)
        run.font.size = Pt(22)
        run.font.bold = True

        if resume.title:
            title = doc.add_paragraph()
            title.alignment = WD_ALIGN_PARAGRAPH.CENTER
            run = title.add_run(resume.title)
            run.font.size = Pt(13)
            run.font.color.rgb = ACCENT_COLOR

        contact = " | ".join(part for part in (resume.email, resume.phone, resume.location) if part)
        if contact:
            line = doc.add_paragraph()
            line.alignment = WD_ALIGN_PARAGRAPH.CENTER
            run = line.add_run(contact)
            run.font.size = Pt(9)
            run.font.color.rgb = MUTED_COLOR

    def _add_heading(self, doc: Document, text: str) -> None:
        paragraph = doc.add_paragraph()
        paragraph.paragraph_format.space_before = Pt(10)
        paragraph.paragraph_format.space_after = Pt(4)
        run = paragraph.add_run(text.upper())
        run.font.bold = True
        run.font.size = Pt(11)
        run.font.color.rgb = ACCENT_COLOR

    def _add_body(self, doc: Document, text: str) -> None:
        for line in text.splitlines() or [text]:
            if line.strip():
                paragraph = doc.add_paragraph(line.strip())
                paragraph.paragraph_format.space_after = Pt(2)

    def _add_section_item(self, doc: Document, item: Section) -> None:
        heading = doc.add_paragraph()
        heading.paragraph_format.space_after = Pt(0)
        run = heading.add_run(item.title)
        run.font.bold = True
        if item.date:
            date_run = heading.add_run(f"  ({item.date})")
            date_run.font.italic = True
            date_run.font.color.rgb = MUTED_COLOR

        if item.subtitle:
            subtitle = doc.add_paragraph()
            subtitle.paragraph_format.space_after = Pt(2)
            run = subtitle.add_run(item.subtitle)
            run.font.italic = True

        if item.content:
            self._add_body(doc, item.content)

    @staticmethod
    def _decode_avatar(avatar: str) -> Optional[BytesIO]:
        if not avatar or not avatar.startswith("data:"):
            return None
        try:
            return BytesIO(base64.b64decode(strip_data_url(avatar), validate=True))
        except (binascii.Error, ValueError):
            logger.warning("⚠️ Avatar data URL could not be decoded")
            return None

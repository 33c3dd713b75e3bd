"""
Certificate artifact rendering.

The production artwork comes from an external renderer; anything with a
``render(data) -> bytes`` method can be injected. The default builds a
one-page DOCX so the service runs standalone.
"""

from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from typing import Protocol

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt


@dataclass(frozen=True)
class CertificateData:
    """Fields printed on a certificate."""

    certificate_id: str
    recipient_name: str
    track: str
    level: str
    issued_at: datetime


class CertificateRenderer(Protocol):
    """Produces the certificate artifact bytes."""

    file_extension: str

    def render(self, data: CertificateData) -> bytes:
        ...


class CertificateRenderError(Exception):
    """Rendering or storing the certificate artifact failed."""


class DocxCertificateRenderer:
    """Plain single-page certificate built with python-docx."""

    file_extension = "docx"
    media_type = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

    def __init__(self, program_name: str = "Internship Program"):
        self.program_name = program_name

    def render(self, data: CertificateData) -> bytes:
        doc = Document()

        title = doc.add_heading("Certificate of Completion", 0)
        title.alignment = WD_ALIGN_PARAGRAPH.CENTER

        intro = doc.add_paragraph("This certifies that")
        intro.alignment = WD_ALIGN_PARAGRAPH.CENTER

        name = doc.add_paragraph()
        name.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = name.add_run(data.recipient_name)
        run.bold = True
        run.font.size = Pt(28)

        body = doc.add_paragraph(
            f"has successfully completed the {data.track} track of the "
            f"{self.program_name} ({data.level})."
        )
        body.alignment = WD_ALIGN_PARAGRAPH.CENTER

        doc.add_paragraph()
        footer = doc.add_paragraph(
            f"Issued {data.issued_at.strftime('%d %B %Y')}  |  Certificate ID: {data.certificate_id}"
        )
        footer.alignment = WD_ALIGN_PARAGRAPH.CENTER

        buffer = BytesIO()
        doc.save(buffer)
        return buffer.getvalue()

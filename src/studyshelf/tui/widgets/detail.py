"""Detail pane showing one material as a card."""

from __future__ import annotations

import logging
from datetime import datetime

from rich.panel import Panel
from rich.text import Text
from textual.widgets import RichLog

from studyshelf.models import Material, MaterialType

logger = logging.getLogger(__name__)


def format_date(created_at: str) -> str:
    """Render an ISO timestamp as a date, or pass it through if unparseable."""
    if not created_at:
        return "unknown date"
    try:
        return datetime.fromisoformat(created_at.replace("Z", "+00:00")).strftime("%d %b %Y")
    except ValueError:
        return created_at


class MaterialDetail(RichLog):
    """Title, type badge, subject, year, semester, date, uploader, file."""

    DEFAULT_CSS = """
    MaterialDetail {
        width: 100%;
        height: 1fr;
        background: $surface;
    }
    """

    def __init__(self) -> None:
        super().__init__(id="detail", markup=False, wrap=True)
        self.current: Material | None = None

    def show_material(self, material: Material) -> None:
        self.clear()
        self.current = material

        body = Text()
        if material.description:
            body.append(material.description + "\n\n")

        line = Text(material.subject, style="bold")
        if material.year:
            line.append(f"  • Year: {material.year}")
        if material.semester:
            line.append(f"  • Sem: {material.semester}")
        body.append_text(line)
        body.append("\n")
        body.append(f"Uploaded {format_date(material.created_at)}\n", style="dim")
        body.append(f"By {material.uploaded_by}\n", style="dim")
        body.append(f"File: {material.file_name}", style="cyan")

        badge_style = "black on cyan" if material.material_type is MaterialType.PYQ else "black on green"
        title = Text(material.title, style="bold")
        title.append(f" {material.material_type.label} ", style=badge_style)

        self.write(Panel(body, title=title, border_style="blue", padding=(1, 2)))
        logger.info("detail shown id=%r", material.id)

    def show_placeholder(self, message: str = "Select a material to see its details") -> None:
        self.clear()
        self.current = None
        self.write(Text(message, style="dim italic"))

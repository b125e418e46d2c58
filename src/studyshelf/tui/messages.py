"""Custom Textual Message types for inter-widget communication.

Widgets never call each other. They post these messages, the App applies
them to its BrowseSession and re-renders.
"""

from __future__ import annotations

from textual.message import Message

from studyshelf.models import Material


class CriteriaChanged(Message):
    """Fired from the filter panel with a partial criteria change."""

    def __init__(self, changes: dict[str, str]) -> None:
        self.changes = changes
        super().__init__()


class FolderToggled(Message):
    """Fired from the folder tree when a folder is opened or closed."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__()


class MaterialSelected(Message):
    """Fired from the folder tree when a material leaf is selected."""

    def __init__(self, material: Material) -> None:
        self.material = material
        super().__init__()

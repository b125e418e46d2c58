"""Services facade for StudyShelf.

Public API boundary for the TUI. Widgets and the App reach the
materials snapshot only through this package, never database.py.
"""

from studyshelf.services.library import CatalogError, LibraryService

__all__ = ["CatalogError", "LibraryService"]

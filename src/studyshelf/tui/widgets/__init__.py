"""TUI widget modules for the StudyShelf browse interface."""

from .detail import MaterialDetail
from .filter_panel import FilterPanel
from .folder_tree import FolderTree
from .search_bar import SearchBar

__all__ = [
    "FilterPanel",
    "FolderTree",
    "MaterialDetail",
    "SearchBar",
]

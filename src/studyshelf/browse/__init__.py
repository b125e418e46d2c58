"""Filtering and folder grouping for the browse view."""

from studyshelf.browse.filters import (
    FilterCriteria,
    branch_options,
    filter_materials,
    matches,
)
from studyshelf.browse.folders import (
    ExpansionState,
    FolderNode,
    FolderPath,
    build_tree,
    folder_path_for,
    group_folders,
    group_materials,
)
from studyshelf.browse.session import BrowseSession, render

__all__ = [
    "BrowseSession",
    "ExpansionState",
    "FilterCriteria",
    "FolderNode",
    "FolderPath",
    "branch_options",
    "build_tree",
    "filter_materials",
    "folder_path_for",
    "group_folders",
    "group_materials",
    "matches",
    "render",
]

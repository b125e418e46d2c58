"""Folder tree widget for the course/branch/semester hierarchy.

The tree holds no expansion state of its own: the App's BrowseSession owns
the expansion set. Every open/close gesture posts FolderToggled, and the
App answers by calling ``show_tree`` with a freshly rendered tree.
"""

from __future__ import annotations

import logging

from rich.text import Text
from textual.widgets import Tree
from textual.widgets.tree import TreeNode

from studyshelf.browse.folders import FolderNode
from studyshelf.models import Material, MaterialType
from studyshelf.tui.messages import FolderToggled, MaterialSelected

logger = logging.getLogger(__name__)


def _folder_label(node: FolderNode) -> Text:
    label = Text()
    label.append(node.label, style="bold" if node.level == 1 else "")
    label.append(f"  {node.caption}", style="dim")
    return label


def _material_label(material: Material) -> Text:
    label = Text(material.title)
    style = "bold cyan" if material.material_type is MaterialType.PYQ else "bold green"
    label.append(f"  {material.material_type.label}", style=style)
    return label


class FolderTree(Tree):
    """Two-level folder view with material leaves.

    Node data is ``{"type": "folder", "key": ...}`` for folders and
    ``{"type": "material", "material": ...}`` for leaves.
    """

    DEFAULT_CSS = """
    FolderTree {
        width: 100%;
        height: 1fr;
        background: $surface;
        scrollbar-gutter: stable;
    }
    """

    def __init__(self) -> None:
        super().__init__("Materials", id="folder-tree")
        self.show_root = False
        self.auto_expand = False

    def show_tree(self, folders: list[FolderNode]) -> None:
        """Rebuild the widget from a rendered folder tree."""
        cursor_key = self._cursor_key()
        # Rebuild-time expansion must not echo back as a toggle
        with self.prevent(Tree.NodeExpanded, Tree.NodeCollapsed):
            self.clear()
            for folder in folders:
                top = self.root.add(
                    _folder_label(folder),
                    data={"type": "folder", "key": folder.key},
                    expand=folder.expanded,
                )
                for semester in folder.children:
                    sem = top.add(
                        _folder_label(semester),
                        data={"type": "folder", "key": semester.key},
                        expand=semester.expanded,
                    )
                    for material in semester.materials:
                        sem.add_leaf(
                            _material_label(material),
                            data={"type": "material", "material": material},
                        )
        if cursor_key is not None:
            self.call_after_refresh(self._restore_cursor, cursor_key)

    def _cursor_key(self) -> str | None:
        node = self.cursor_node
        if node is None or not node.data or node.data.get("type") != "folder":
            return None
        return node.data["key"]

    def _restore_cursor(self, key: str) -> None:
        found = self._find_folder(self.root, key)
        if found is not None and found.line >= 0:
            self.cursor_line = found.line

    def _find_folder(self, node: TreeNode, key: str) -> TreeNode | None:
        for child in node.children:
            if child.data and child.data.get("key") == key:
                return child
            found = self._find_folder(child, key)
            if found is not None:
                return found
        return None

    def _request_toggle(self, node: TreeNode) -> None:
        data = node.data
        if not data or data.get("type") != "folder":
            return
        logger.info("folder toggle requested key=%r", data["key"])
        self.post_message(FolderToggled(key=data["key"]))

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        """Folders toggle on selection; leaves post MaterialSelected."""
        event.stop()
        data = event.node.data
        if not data:
            return
        if data.get("type") == "material":
            material = data["material"]
            logger.info("material selected id=%r", material.id)
            self.post_message(MaterialSelected(material=material))
        else:
            self._request_toggle(event.node)

    def on_tree_node_expanded(self, event: Tree.NodeExpanded) -> None:
        """Arrow clicks and the space key expand natively; route them to the App."""
        event.stop()
        self._request_toggle(event.node)

    def on_tree_node_collapsed(self, event: Tree.NodeCollapsed) -> None:
        event.stop()
        self._request_toggle(event.node)

"""Course/branch/semester folder grouping with a shared expansion set.

Materials are partitioned by a derived ``FolderPath``. Paths are then
grouped a second time by their course/branch prefix, giving a two-level
tree: course/branch folders on top, semester folders below, materials as
leaves. Which folders are open is tracked in a single flat set of string
keys (``ExpansionState``) covering both levels.

Ordering:
    - Top-level folders appear in order of first appearance in the input.
    - Semester folders are sorted by their full path string, so "Sem 10"
      sorts between "Sem 1" and "Sem 2".
    - Materials keep their input order inside a folder.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import NamedTuple

from studyshelf.constants import GENERAL, OTHER, SEMESTER_PREFIX, UNCATEGORIZED
from studyshelf.models import Material


class FolderPath(NamedTuple):
    """Derived grouping key for a material. Never stored."""

    course: str
    branch: str
    semester_label: str

    @property
    def key(self) -> str:
        """Full ``course/branch/semester`` key of the semester folder."""
        return f"{self.course}/{self.branch}/{self.semester_label}"

    @property
    def group_key(self) -> str:
        """``course/branch`` key of the enclosing top-level folder."""
        return f"{self.course}/{self.branch}"


def semester_label(semester: str | None) -> str:
    """``"Sem <n>"`` for a present semester, ``"Other"`` when absent or empty."""
    return f"{SEMESTER_PREFIX}{semester}" if semester else OTHER


def folder_path_for(material: Material) -> FolderPath:
    """Derive the folder a material belongs to."""
    return FolderPath(
        course=material.course or UNCATEGORIZED,
        branch=material.branch or GENERAL,
        semester_label=semester_label(material.semester),
    )


def group_materials(materials: Iterable[Material]) -> dict[FolderPath, list[Material]]:
    """Partition materials by folder path.

    Keys are in first-seen order and each material lands in exactly one
    group, appended in input order.
    """
    groups: dict[FolderPath, list[Material]] = {}
    for material in materials:
        groups.setdefault(folder_path_for(material), []).append(material)
    return groups


def group_folders(
    groups: dict[FolderPath, list[Material]],
) -> dict[str, list[FolderPath]]:
    """Group folder paths by their course/branch prefix.

    Prefixes keep first-seen order; the paths under each prefix are sorted
    lexicographically by their full key.
    """
    by_prefix: dict[str, list[FolderPath]] = {}
    for path in groups:
        by_prefix.setdefault(path.group_key, []).append(path)
    return {
        prefix: sorted(paths, key=lambda p: p.key)
        for prefix, paths in by_prefix.items()
    }


class ExpansionState:
    """Set of currently expanded folder keys, shared by both tree levels.

    Starts empty (everything collapsed). ``toggle`` is the only mutation.
    Collapsing a course/branch folder leaves its semester folders' keys in
    the set, so re-opening the parent restores them.
    """

    def __init__(self, keys: Iterable[str] = ()) -> None:
        self._keys: set[str] = set(keys)

    def toggle(self, key: str) -> bool:
        """Flip membership of ``key``. Returns True if it is now expanded."""
        if key in self._keys:
            self._keys.remove(key)
            return False
        self._keys.add(key)
        return True

    def is_expanded(self, key: str) -> bool:
        return key in self._keys

    @property
    def keys(self) -> frozenset[str]:
        return frozenset(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"ExpansionState({sorted(self._keys)!r})"


@dataclass
class FolderNode:
    """One rendered folder in the browse tree.

    Level 1 nodes are course/branch folders and carry ``children`` when
    expanded. Level 2 nodes are semester folders and carry ``materials``
    when expanded. Counts are always filled in, expanded or not.
    """

    key: str
    label: str
    count: int
    expanded: bool
    level: int
    children: list[FolderNode] = field(default_factory=list)
    materials: list[Material] = field(default_factory=list)

    @property
    def caption(self) -> str:
        """Count badge text, e.g. ``(3 materials)`` or ``(1 files)``."""
        noun = "materials" if self.level == 1 else "files"
        return f"({self.count} {noun})"

    def to_dict(self) -> dict[str, object]:
        d: dict[str, object] = {
            "key": self.key,
            "label": self.label,
            "count": self.count,
            "expanded": self.expanded,
        }
        if self.level == 1:
            d["children"] = [child.to_dict() for child in self.children]
        else:
            d["leaves"] = [m.to_dict() for m in self.materials]
        return d


def build_tree(
    materials: Iterable[Material], expansion: ExpansionState
) -> list[FolderNode]:
    """Render materials into the two-level folder tree.

    Children of a collapsed node are not built; counts are summed from the
    current groups on every call.
    """
    groups = group_materials(materials)
    tree: list[FolderNode] = []
    for prefix, paths in group_folders(groups).items():
        first = paths[0]
        node = FolderNode(
            key=prefix,
            label=f"{first.course} / {first.branch}",
            count=sum(len(groups[p]) for p in paths),
            expanded=expansion.is_expanded(prefix),
            level=1,
        )
        if node.expanded:
            for path in paths:
                open_ = expansion.is_expanded(path.key)
                node.children.append(
                    FolderNode(
                        key=path.key,
                        label=path.semester_label,
                        count=len(groups[path]),
                        expanded=open_,
                        level=2,
                        materials=list(groups[path]) if open_ else [],
                    )
                )
        tree.append(node)
    return tree

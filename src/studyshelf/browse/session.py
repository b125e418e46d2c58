"""Per-view browse state: the material batch, criteria, and open folders.

A presentation layer creates one ``BrowseSession`` when its view mounts
and drops it on unmount. Nothing here is process-wide.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from studyshelf.browse.filters import FilterCriteria, filter_materials
from studyshelf.browse.folders import ExpansionState, FolderNode, build_tree
from studyshelf.models import Material

logger = logging.getLogger(__name__)


def render(
    materials: Iterable[Material],
    criteria: FilterCriteria,
    expansion: ExpansionState,
) -> list[dict[str, object]]:
    """Filter, group, and render to plain ``{label, count, expanded, children|leaves}`` dicts."""
    return [node.to_dict() for node in build_tree(filter_materials(materials, criteria), expansion)]


class BrowseSession:
    """Drives the pure filter and folder functions from UI events.

    Usage::

        session = BrowseSession()
        session.load(await library.fetch_approved_materials())
        session.on_criteria_change(course="B.Tech")
        session.on_toggle("B.Tech/CSE")
        tree = session.render()
    """

    def __init__(
        self,
        materials: Iterable[Material] = (),
        criteria: FilterCriteria | None = None,
        expansion: ExpansionState | None = None,
    ) -> None:
        self.materials: list[Material] = list(materials)
        self.criteria = criteria if criteria is not None else FilterCriteria()
        self.expansion = expansion if expansion is not None else ExpansionState()

    def load(self, materials: Iterable[Material]) -> None:
        """Replace the whole batch with a fresh snapshot."""
        self.materials = list(materials)
        logger.debug("browse batch loaded count=%d", len(self.materials))

    def on_criteria_change(self, **changes: str) -> FilterCriteria:
        """Merge a partial criteria change and return the new criteria."""
        self.criteria = self.criteria.update(**changes)
        logger.debug("criteria changed %s", self.criteria.describe())
        return self.criteria

    def reset_criteria(self) -> FilterCriteria:
        """Drop every filter, keeping the expansion set."""
        self.criteria = FilterCriteria()
        return self.criteria

    def on_toggle(self, key: str) -> bool:
        """Toggle a folder. Returns True if it is now expanded."""
        return self.expansion.toggle(key)

    def visible(self) -> list[Material]:
        """Materials passing the current criteria."""
        return filter_materials(self.materials, self.criteria)

    def render(self) -> list[FolderNode]:
        """Folder tree for the visible materials and current expansion."""
        return build_tree(self.visible(), self.expansion)

    def is_empty(self) -> bool:
        """True when nothing passes the current criteria."""
        return not self.visible()

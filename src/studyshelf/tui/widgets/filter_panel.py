"""Filter panel widget for narrowing the browse tree.

Provides Select dropdowns for material type, course, branch, and semester.
Each dropdown carries an explicit "all" option. Branch options depend on
the chosen course and the branch dropdown is disabled while no course is
chosen. Changes post CriteriaChanged messages for the App to handle.
"""

from __future__ import annotations

import logging

from textual.containers import Vertical
from textual.widgets import Select, Static

from studyshelf.browse.filters import branch_options
from studyshelf.constants import ALL, COURSE_BRANCHES, SEMESTERS
from studyshelf.tui.messages import CriteriaChanged

logger = logging.getLogger(__name__)


# Select id -> FilterCriteria field
_FIELDS: dict[str, str] = {
    "filter-type": "material_type",
    "filter-course": "course",
    "filter-branch": "branch",
    "filter-semester": "semester",
}


def _branch_choices(course: str) -> list[tuple[str, str]]:
    return [("All Branches", ALL)] + [(b, b) for b in branch_options(course)]


class FilterPanel(Vertical):
    """Type, course, branch, and semester dropdowns."""

    DEFAULT_CSS = """
    FilterPanel {
        height: auto;
        max-height: 20;
        padding: 1;
        border-bottom: solid $primary;
        background: $surface;
    }
    """

    def __init__(self) -> None:
        super().__init__(id="filter-panel")

    def compose(self):
        yield Static("Filters", classes="filter-header")
        yield Select(
            [("All Types", ALL), ("PYQ Only", "pyq"), ("Notes Only", "notes")],
            value=ALL,
            allow_blank=False,
            id="filter-type",
        )
        yield Select(
            [("All Courses", ALL)] + [(c, c) for c in COURSE_BRANCHES],
            value=ALL,
            allow_blank=False,
            id="filter-course",
        )
        yield Select(
            _branch_choices(ALL),
            value=ALL,
            allow_blank=False,
            disabled=True,
            id="filter-branch",
        )
        yield Select(
            [("All Semesters", ALL)] + [(f"Semester {s}", s) for s in SEMESTERS],
            value=ALL,
            allow_blank=False,
            id="filter-semester",
        )

    def on_select_changed(self, event: Select.Changed) -> None:
        """Post the changed field; a course change also refreshes branches."""
        select_id = event.select.id or ""
        field = _FIELDS.get(select_id)
        if field is None:
            return
        event.stop()
        value = str(event.value)

        if field == "course":
            self._refresh_branches(value)

        logger.info("filter dropdown changed field=%s value=%r", field, value)
        self.post_message(CriteriaChanged(changes={field: value}))

    def _refresh_branches(self, course: str) -> None:
        branch = self.query_one("#filter-branch", Select)
        branch.set_options(_branch_choices(course))
        branch.value = ALL
        branch.disabled = course == ALL

    def reset_filters(self) -> None:
        """Put every dropdown back to "all". The App resets the criteria."""
        for select_id in _FIELDS:
            self.query_one(f"#{select_id}", Select).value = ALL
        self.query_one("#filter-branch", Select).disabled = True
        logger.info("filters reset")

"""Search bar widget feeding the App's reactive query pipeline.

Every edit is pushed to ``input_subject``; Enter pushes the current value
to ``enter_subject``. The App debounces the first stream and merges the
second so Enter applies the query at once.
"""

from __future__ import annotations

import logging

from reactivex.subject import Subject
from textual.widgets import Input

logger = logging.getLogger(__name__)


class SearchBar(Input):
    """Free-text query input matched against title, subject, and description."""

    DEFAULT_CSS = """
    SearchBar {
        dock: top;
        height: 3;
        padding: 0 1;
        border-bottom: solid $primary;
    }
    """

    def __init__(self) -> None:
        super().__init__(
            placeholder="Search by title, subject, or description... (Ctrl+F)",
            id="search-bar",
        )
        self.input_subject: Subject[str] = Subject()
        self.enter_subject: Subject[str] = Subject()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input is not self:
            return
        self.input_subject.on_next(event.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input is not self:
            return
        query = event.value
        logger.info("search submitted query=%r", query)
        self.enter_subject.on_next(query)

    def clear_and_reset(self) -> None:
        """Empty the input; the change event clears the query."""
        self.value = ""
        logger.info("search bar cleared")

"""StudyShelf TUI Application.

Main Textual App subclass: search bar on top, filter panel and folder tree
on the left, material detail on the right. The App owns one BrowseSession
for its lifetime and re-renders the folder tree after every query,
filter, or folder toggle.
"""

from __future__ import annotations

import asyncio
import logging

import reactivex as rx
from reactivex import operators as ops
from reactivex.scheduler.eventloop import AsyncIOScheduler
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.widgets import Footer, Header, Static

from studyshelf.browse.filters import FilterCriteria
from studyshelf.browse.session import BrowseSession
from studyshelf.services import CatalogError
from studyshelf.tui.messages import CriteriaChanged, FolderToggled, MaterialSelected
from studyshelf.tui.providers import ShelfCommands
from studyshelf.tui.telemetry import Telemetry
from studyshelf.tui.widgets import FilterPanel, FolderTree, MaterialDetail, SearchBar

HINT = "Ctrl+P: Commands"

logger = logging.getLogger(__name__)


class StudyShelfApp(App):
    """Browse approved study materials by course, branch, and semester."""

    TITLE = "StudyShelf"
    SUB_TITLE = "Past-year questions & notes"
    COMMANDS = App.COMMANDS | {ShelfCommands}

    CSS = """
    #main {
        layout: horizontal;
        height: 1fr;
    }

    #browse-pane {
        width: 2fr;
        min-width: 40;
        border-right: solid $primary;
    }

    #detail-pane {
        width: 3fr;
        min-width: 30;
        overflow-y: auto;
    }

    #status-bar {
        dock: bottom;
        height: 1;
        background: $primary-background;
        color: $text;
        padding: 0 1;
    }

    .hidden {
        display: none;
    }
    """

    BINDINGS = [
        ("ctrl+p", "command_palette", "Commands"),
        ("ctrl+f", "focus_search", "Search"),
        ("ctrl+t", "focus_tree", "Folders"),
        ("ctrl+r", "reload", "Reload"),
        ("ctrl+l", "reset_filters", "Reset Filters"),
        ("escape", "clear_search", "Clear"),
    ]

    criteria: reactive[FilterCriteria] = reactive(FilterCriteria)
    visible_count: reactive[int] = reactive(0)
    is_loading: reactive[bool] = reactive(False)

    def __init__(
        self,
        library_service: object | None = None,
        telemetry: Telemetry | None = None,
        debounce_seconds: float = 0.3,
    ) -> None:
        """Initialize the app with its data source.

        Args:
            library_service: Materials facade (may be None in tests).
            telemetry: Browse event tracing. Defaults to an unexported provider.
            debounce_seconds: Quiet period before a typed query is applied.
        """
        super().__init__()
        self.library_service = library_service
        self.telemetry = telemetry if telemetry is not None else Telemetry()
        self.debounce_seconds = debounce_seconds
        self.session: BrowseSession | None = None
        self.load_error: str | None = None
        self._loaded = False
        self.status_text = ""
        self._rx_subscription = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield SearchBar()
        with Horizontal(id="main"):
            with Vertical(id="browse-pane"):
                yield FilterPanel()
                yield FolderTree()
            with Vertical(id="detail-pane"):
                yield MaterialDetail()
        yield Static(f"Loading... | {HINT}", id="status-bar")
        yield Footer()

    async def on_mount(self) -> None:
        """Create the browse session, fetch the batch, wire the query stream."""
        self.session = BrowseSession()
        self.query_one(MaterialDetail).show_placeholder()
        await self._load_materials()

        loop = asyncio.get_running_loop()
        scheduler = AsyncIOScheduler(loop)
        search_bar = self.query_one(SearchBar)

        # Debounced typing merged with immediate Enter
        query_stream = rx.merge(
            search_bar.input_subject.pipe(
                ops.debounce(self.debounce_seconds, scheduler=scheduler),
            ),
            search_bar.enter_subject,
        ).pipe(ops.distinct_until_changed())

        self._rx_subscription = query_stream.subscribe(on_next=self._on_query)
        logger.info("app mounted")

    def on_unmount(self) -> None:
        """Dispose the query subscription and drop the session."""
        if self._rx_subscription is not None:
            self._rx_subscription.dispose()
            self._rx_subscription = None
        self.session = None

    # ------------------------------------------------------------------
    # Loading and rendering
    # ------------------------------------------------------------------

    async def _load_materials(self) -> None:
        """Fetch a full snapshot; on failure keep the tree untouched."""
        if self.session is None:
            return
        if self.library_service is None:
            self.session.load([])
            self._loaded = True
            self._refresh_view()
            return

        with self.telemetry.span("load_materials") as event:
            self.is_loading = True
            try:
                materials = await self.library_service.fetch_approved_materials()
            except CatalogError as e:
                event.fail(e)
                self.load_error = str(e)
                self.is_loading = False
                self.notify("Error loading materials", severity="error")
                self._set_status(f"Error loading materials: {e}")
                return

            self.session.load(materials)
            self._loaded = True
            self.load_error = None
            self.is_loading = False
            event.record(count=len(materials))
        self._refresh_view()

    def _refresh_view(self) -> None:
        """Render the session into the folder tree and status bar.

        A failed reload keeps the last good batch, so rendering only waits
        for the first successful load.
        """
        if self.session is None or self.is_loading or not self._loaded:
            return
        folders = self.session.render()
        self.visible_count = sum(f.count for f in folders)
        self.query_one(FolderTree).show_tree(folders)

        filters = self.session.criteria.describe()
        if self.visible_count == 0:
            self._set_status(f"No materials found | Filters: {filters} | {HINT}")
        else:
            self._set_status(
                f"{self.visible_count} materials in {len(folders)} folders | "
                f"Filters: {filters} | {HINT}"
            )

    def _set_status(self, text: str) -> None:
        self.status_text = text
        self.query_one("#status-bar", Static).update(text)

    def watch_is_loading(self, loading: bool) -> None:
        if loading:
            self._set_status(f"Loading... | {HINT}")

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_query(self, query: str) -> None:
        self._apply_changes({"query": query})

    def _apply_changes(self, changes: dict[str, str]) -> None:
        if self.session is None:
            return
        with self.telemetry.span("criteria_changed", fields=",".join(sorted(changes))) as event:
            self.criteria = self.session.on_criteria_change(**changes)
            self._refresh_view()
            event.record(criteria=self.criteria, visible=self.visible_count)

    def on_criteria_changed(self, event: CriteriaChanged) -> None:
        self._apply_changes(event.changes)

    def on_folder_toggled(self, event: FolderToggled) -> None:
        if self.session is None:
            return
        with self.telemetry.span("folder_toggled", key=event.key) as toggle:
            toggle.record(expanded=self.session.on_toggle(event.key))
            self._refresh_view()

    def on_material_selected(self, event: MaterialSelected) -> None:
        self.query_one(MaterialDetail).show_material(event.material)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def action_focus_search(self) -> None:
        self.query_one(SearchBar).focus()

    def action_focus_tree(self) -> None:
        self.query_one(FolderTree).focus()

    def action_toggle_filters(self) -> None:
        self.query_one(FilterPanel).toggle_class("hidden")

    def action_clear_search(self) -> None:
        """Clear the search input and apply the empty query at once."""
        search_bar = self.query_one(SearchBar)
        search_bar.clear_and_reset()
        search_bar.enter_subject.on_next("")

    def action_reset_filters(self) -> None:
        """Clear the query and every dropdown. Open folders stay open."""
        if self.session is None:
            return
        self.query_one(FilterPanel).reset_filters()
        self.action_clear_search()
        with self.telemetry.span("filters_reset") as event:
            self.criteria = self.session.reset_criteria()
            self._refresh_view()
            event.record(visible=self.visible_count)

    async def action_reload(self) -> None:
        await self._load_materials()

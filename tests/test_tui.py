"""Headless tests for the StudyShelf TUI.

Uses Textual's App.run_test / Pilot with an AsyncMock library service so
no database is touched. asyncio_mode = "auto" runs the async tests.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from opentelemetry.trace import StatusCode
from textual.widgets import Select

from studyshelf.constants import ALL
from studyshelf.services import CatalogError
from studyshelf.tui.app import StudyShelfApp
from studyshelf.tui.messages import FolderToggled, MaterialSelected
from studyshelf.tui.providers import ShelfCommands
from studyshelf.tui.telemetry import Telemetry
from studyshelf.tui.widgets import FilterPanel, FolderTree, MaterialDetail, SearchBar
from studyshelf.tui.widgets.detail import format_date


@pytest.fixture
def mock_library_service(sample_materials) -> AsyncMock:
    """Mock LibraryService returning the sample catalog."""
    svc = AsyncMock()
    svc.fetch_approved_materials.return_value = list(sample_materials)
    return svc


def make_app(library_service=None, telemetry=None) -> StudyShelfApp:
    return StudyShelfApp(
        library_service=library_service,
        telemetry=telemetry,
        debounce_seconds=0.05,
    )


def top_labels(app: StudyShelfApp) -> list[str]:
    tree = app.query_one(FolderTree)
    return [node.label.plain for node in tree.root.children]


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


class TestFormatDate:
    def test_iso_timestamp(self):
        assert format_date("2024-05-10T09:00:00") == "10 May 2024"

    def test_utc_suffix(self):
        assert format_date("2024-05-10T09:00:00Z") == "10 May 2024"

    def test_empty(self):
        assert format_date("") == "unknown date"

    def test_unparseable_passthrough(self):
        assert format_date("last week") == "last week"


# ---------------------------------------------------------------------------
# Mount and loading
# ---------------------------------------------------------------------------


async def test_app_mounts_without_service():
    app = make_app()
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        assert app.query_one(SearchBar) is not None
        assert app.query_one(FilterPanel) is not None
        assert app.query_one(FolderTree) is not None
        assert app.query_one(MaterialDetail) is not None
        assert "No materials found" in app.status_text


async def test_app_loads_batch_collapsed(mock_library_service):
    app = make_app(library_service=mock_library_service)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        mock_library_service.fetch_approved_materials.assert_awaited_once()
        labels = top_labels(app)
        assert labels[0].startswith("B.Tech / CSE")
        assert "(3 materials)" in labels[0]
        assert len(labels) == 4
        assert all(not node.children for node in app.query_one(FolderTree).root.children)
        assert app.visible_count == 6
        assert app.status_text.startswith("6 materials in 4 folders")


async def test_load_failure_shows_error(mock_library_service):
    mock_library_service.fetch_approved_materials.side_effect = CatalogError("disk gone")
    app = make_app(library_service=mock_library_service)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        assert app.load_error == "disk gone"
        assert "Error loading materials" in app.status_text
        assert top_labels(app) == []


async def test_reload_after_failure(mock_library_service, sample_materials):
    mock_library_service.fetch_approved_materials.side_effect = [
        CatalogError("offline"),
        list(sample_materials),
    ]
    app = make_app(library_service=mock_library_service)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        assert app.load_error is not None
        await app.action_reload()
        await pilot.pause()
        assert app.load_error is None
        assert len(top_labels(app)) == 4


async def test_failed_reload_keeps_last_batch_browsable(mock_library_service, sample_materials):
    mock_library_service.fetch_approved_materials.side_effect = [
        list(sample_materials),
        CatalogError("offline"),
    ]
    app = make_app(library_service=mock_library_service)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        await app.action_reload()
        await pilot.pause()
        assert app.load_error == "offline"
        assert len(top_labels(app)) == 4

        app.query_one(SearchBar).enter_subject.on_next("accounting")
        await pilot.pause()
        labels = top_labels(app)
        assert len(labels) == 1
        assert labels[0].startswith("MBA / Finance")
        assert app.visible_count == 1


def test_commands_provider_registered():
    assert ShelfCommands in StudyShelfApp.COMMANDS


# ---------------------------------------------------------------------------
# Folder toggling
# ---------------------------------------------------------------------------


async def test_toggle_message_expands_and_collapses(mock_library_service):
    app = make_app(library_service=mock_library_service)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        tree = app.query_one(FolderTree)

        tree.post_message(FolderToggled("B.Tech/CSE"))
        await pilot.pause()
        cse = tree.root.children[0]
        assert cse.is_expanded
        assert [c.label.plain.split("  ")[0] for c in cse.children] == ["Sem 1", "Sem 3"]
        assert app.session.expansion.is_expanded("B.Tech/CSE")

        tree.post_message(FolderToggled("B.Tech/CSE"))
        await pilot.pause()
        assert not app.session.expansion.is_expanded("B.Tech/CSE")
        assert not tree.root.children[0].children


async def test_selecting_folder_node_toggles(mock_library_service):
    app = make_app(library_service=mock_library_service)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        tree = app.query_one(FolderTree)
        tree.focus()
        tree.cursor_line = 1
        await pilot.press("enter")
        await pilot.pause()
        assert app.session.expansion.keys == frozenset({"MBA/Finance"})


async def test_semester_leaves_and_detail(mock_library_service, sample_materials):
    app = make_app(library_service=mock_library_service)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        tree = app.query_one(FolderTree)
        tree.post_message(FolderToggled("B.Tech/CSE"))
        await pilot.pause()
        tree.post_message(FolderToggled("B.Tech/CSE/Sem 3"))
        await pilot.pause()

        sem3 = tree.root.children[0].children[1]
        leaves = [leaf.data["material"].id for leaf in sem3.children]
        assert leaves == ["dbms-2023", "ds-notes"]

        tree.post_message(MaterialSelected(sample_materials[0]))
        await pilot.pause()
        assert app.query_one(MaterialDetail).current is sample_materials[0]


# ---------------------------------------------------------------------------
# Search and filters
# ---------------------------------------------------------------------------


async def test_typed_query_is_debounced(mock_library_service):
    app = make_app(library_service=mock_library_service)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        app.query_one(SearchBar).value = "data"
        await pilot.pause(0.3)
        assert app.criteria.query == "data"
        assert app.visible_count == 2
        assert top_labels(app)[0].startswith("B.Tech / CSE")


async def test_enter_applies_query(mock_library_service):
    app = make_app(library_service=mock_library_service)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        app.query_one(SearchBar).enter_subject.on_next("accounting")
        await pilot.pause()
        assert app.criteria.query == "accounting"
        assert app.visible_count == 1


async def test_query_applied_without_trimming(mock_library_service):
    app = make_app(library_service=mock_library_service)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        app.query_one(SearchBar).value = "stacks "
        await pilot.pause(0.3)
        assert app.criteria.query == "stacks "
        assert top_labels(app) == []


async def test_no_matches_state(mock_library_service):
    app = make_app(library_service=mock_library_service)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        app.query_one(SearchBar).enter_subject.on_next("quantum")
        await pilot.pause()
        assert top_labels(app) == []
        assert "No materials found" in app.status_text


async def test_clear_search(mock_library_service):
    app = make_app(library_service=mock_library_service)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        search_bar = app.query_one(SearchBar)
        search_bar.enter_subject.on_next("dbms")
        await pilot.pause()
        app.action_clear_search()
        await pilot.pause(0.2)
        assert search_bar.value == ""
        assert app.criteria.query == ""
        assert app.visible_count == 6


async def test_course_select_filters_and_enables_branch(mock_library_service):
    app = make_app(library_service=mock_library_service)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        branch = app.query_one("#filter-branch", Select)
        assert branch.disabled is True

        app.query_one("#filter-course", Select).value = "MBA"
        await pilot.pause()
        assert app.criteria.course == "MBA"
        assert branch.disabled is False
        assert app.visible_count == 1
        assert top_labels(app)[0].startswith("MBA / Finance")


async def test_type_select_filters(mock_library_service):
    app = make_app(library_service=mock_library_service)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        app.query_one("#filter-type", Select).value = "notes"
        await pilot.pause()
        assert app.criteria.material_type == "notes"
        assert app.visible_count == 3


async def test_reset_filters(mock_library_service):
    app = make_app(library_service=mock_library_service)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        search_bar = app.query_one(SearchBar)
        search_bar.enter_subject.on_next("accounting")
        app.query_one("#filter-semester", Select).value = "2"
        await pilot.pause()
        assert app.visible_count == 1

        app.action_reset_filters()
        await pilot.pause(0.2)
        assert app.criteria.is_empty()
        assert search_bar.value == ""
        assert app.query_one("#filter-semester", Select).value == ALL
        assert app.visible_count == 6
        assert app.status_text.startswith("6 materials in 4 folders")

        search_bar.enter_subject.on_next("accounting")
        await pilot.pause()
        assert app.criteria.query == "accounting"
        assert app.visible_count == 1


async def test_reset_filters_keeps_open_folders(mock_library_service):
    app = make_app(library_service=mock_library_service)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        app.query_one(FolderTree).post_message(FolderToggled("MBA/Finance"))
        app.query_one(SearchBar).enter_subject.on_next("dbms")
        await pilot.pause()
        app.action_reset_filters()
        await pilot.pause()
        assert app.session.expansion.is_expanded("MBA/Finance")
        assert app.query_one(FolderTree).root.children[1].is_expanded
async def test_expansion_kept_across_filter_changes(mock_library_service):
    app = make_app(library_service=mock_library_service)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        app.query_one(FolderTree).post_message(FolderToggled("B.Tech/CSE"))
        await pilot.pause()
        app.query_one("#filter-type", Select).value = "pyq"
        await pilot.pause()
        cse = app.query_one(FolderTree).root.children[0]
        assert cse.is_expanded
        assert "(2 materials)" in cse.label.plain


# ---------------------------------------------------------------------------
# Telemetry
# ---------------------------------------------------------------------------


async def test_spans_recorded(mock_library_service):
    telemetry, exporter = Telemetry.in_memory()
    app = make_app(library_service=mock_library_service, telemetry=telemetry)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        app.query_one(FolderTree).post_message(FolderToggled("MBA/Finance"))
        await pilot.pause()
        app.query_one(SearchBar).enter_subject.on_next("dbms")
        await pilot.pause()
        app.action_reset_filters()
        await pilot.pause()

    spans = {span.name: span for span in exporter.get_finished_spans()}
    assert spans["tui.load_materials"].attributes["browse.count"] == 6
    toggled = spans["tui.folder_toggled"]
    assert toggled.attributes["browse.key"] == "MBA/Finance"
    assert toggled.attributes["browse.expanded"] is True
    changed = spans["tui.criteria_changed"]
    assert changed.attributes["browse.fields"] == "query"
    assert spans["tui.filters_reset"].attributes["browse.visible"] == 6


async def test_failed_load_span_marked_error(mock_library_service):
    mock_library_service.fetch_approved_materials.side_effect = CatalogError("disk gone")
    telemetry, exporter = Telemetry.in_memory()
    app = make_app(library_service=mock_library_service, telemetry=telemetry)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()

    (load,) = [s for s in exporter.get_finished_spans() if s.name == "tui.load_materials"]
    assert load.status.status_code == StatusCode.ERROR
    assert "browse.count" not in load.attributes

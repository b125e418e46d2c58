"""StudyShelf Interactive TUI.

Provides a Textual-based terminal interface for browsing approved study
materials in a course / branch / semester folder tree with live search
and filter dropdowns.
"""

from __future__ import annotations

from studyshelf.config import ShelfConfig


def run_tui(config: ShelfConfig | None = None) -> None:
    """Create the library service and launch the TUI application.

    All imports are deferred for fast module loading.

    Args:
        config: Runtime settings. Defaults to ``load_config()``.
    """
    from studyshelf.config import load_config
    from studyshelf.services import LibraryService
    from studyshelf.tui.app import StudyShelfApp
    from studyshelf.tui.telemetry import configure_file_logging

    if config is None:
        config = load_config()

    if config.file_logging:
        configure_file_logging(config.log_dir)

    app = StudyShelfApp(
        library_service=LibraryService(db_path=str(config.db_path)),
        debounce_seconds=config.debounce_seconds,
    )
    app.run()

"""Command palette provider for the StudyShelf TUI (Ctrl+P)."""

from __future__ import annotations

from functools import partial

from textual.command import Hit, Hits, Provider


class ShelfCommands(Provider):
    """Fuzzy-searchable palette entries mapped to App actions."""

    COMMANDS: dict[str, str] = {
        "Search Materials": "focus_search",
        "Clear Search": "clear_search",
        "Reset Filters": "reset_filters",
        "Reload Materials": "reload",
        "Focus Folder Tree": "focus_tree",
        "Toggle Filter Panel": "toggle_filters",
    }

    async def search(self, query: str) -> Hits:
        matcher = self.matcher(query)
        for name, action in self.COMMANDS.items():
            score = matcher.match(name)
            if score > 0:
                yield Hit(
                    score,
                    matcher.highlight(name),
                    partial(self.app.run_action, action),
                )

"""Dashboard view state - Plain data.

Selection and sidebar state belong to one dashboard session and are
passed around explicitly. Hover state is owned by the marker reconciler.
"""

from dataclasses import dataclass

from hazardwatch.core.records import RecordKey


@dataclass
class ViewState:
    """Component-local UI state for one dashboard session.

    Attributes:
        selected_key: (feed, id) of the selected record, if any
        sidebar_open: Whether the filter sidebar is shown
    """
    selected_key: RecordKey | None = None
    sidebar_open: bool = True

    def select(self, key: RecordKey) -> None:
        self.selected_key = key

    def clear_selection(self) -> None:
        self.selected_key = None

    def toggle_sidebar(self) -> bool:
        """Flip the sidebar and return the new state."""
        self.sidebar_open = not self.sidebar_open
        return self.sidebar_open

    def retain_selection(self, visible_keys: set[RecordKey]) -> None:
        """Drop the selection if its record is no longer visible."""
        if self.selected_key is not None and self.selected_key not in visible_keys:
            self.selected_key = None

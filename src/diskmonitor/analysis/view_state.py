"""
Hidden-series and expanded-database toggles.
"""

import logging
from typing import Iterable, Set

logger = logging.getLogger(__name__)


class ViewState:
    """
    Display toggles applied when series are rebuilt.

    Hidden keys are left out of series and axis maxima but stay in the
    legend. Expanded databases only matter for File grouping, where a
    database's files are listed under its header when expanded.
    """

    def __init__(self):
        self.hidden: Set[str] = set()
        self.expanded: Set[str] = set()

    def is_hidden(self, key: str) -> bool:
        return key in self.hidden

    def is_expanded(self, database_name: str) -> bool:
        return database_name in self.expanded

    def toggle(self, key: str) -> bool:
        """Flip one key's visibility. Returns True if it is now hidden."""
        if key in self.hidden:
            self.hidden.discard(key)
            return False
        self.hidden.add(key)
        return True

    def toggle_database(self, file_keys: Iterable[str]) -> bool:
        """
        Flip a whole database's files at once.

        If any file is visible all of them are hidden, otherwise all are
        shown. Returns True if the files are now hidden.
        """
        keys = list(file_keys)
        any_visible = any(key not in self.hidden for key in keys)
        if any_visible:
            self.hidden.update(keys)
        else:
            self.hidden.difference_update(keys)
        return any_visible

    def toggle_expanded(self, database_name: str) -> bool:
        """Flip a database header. Returns True if it is now expanded."""
        if database_name in self.expanded:
            self.expanded.discard(database_name)
            return False
        self.expanded.add(database_name)
        return True

    def show_all(self) -> None:
        self.hidden.clear()

    def hide_all(self, keys: Iterable[str]) -> None:
        self.hidden.update(keys)

    def expand_all(self, database_names: Iterable[str]) -> None:
        self.expanded.update(database_names)

    def collapse_all(self) -> None:
        self.expanded.clear()

    def reset(self) -> None:
        self.hidden.clear()
        self.expanded.clear()
        logger.debug("View state reset")

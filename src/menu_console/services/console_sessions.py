"""In-memory store of admin console state, one entry per browser."""

import logging
from collections import OrderedDict
from collections.abc import Callable

from menu_console.services.admin_console import AdminConsole

logger = logging.getLogger(__name__)


class ConsoleSessionStore:
    """Maps browser session ids to their AdminConsole.

    Entries are a per-process cache of menu snapshots and editor state. The
    login itself travels in the signed session cookie, so an evicted or
    missing entry is rebuilt on the next request of a signed-in browser.
    """

    def __init__(self, console_factory: Callable[[], AdminConsole], max_sessions: int = 1000) -> None:
        """Initialize the store.

        Args:
            console_factory: Creates a fresh AdminConsole for a new browser
            max_sessions: Upper bound on tracked browsers
        """
        self.console_factory = console_factory
        self.max_sessions = max_sessions
        self._consoles: OrderedDict[str, AdminConsole] = OrderedDict()

    def __len__(self) -> int:
        return len(self._consoles)

    def get(self, session_id: str | None) -> AdminConsole | None:
        """Return the console for a session id and mark it recently used."""
        if session_id is None or session_id not in self._consoles:
            return None
        self._consoles.move_to_end(session_id)
        return self._consoles[session_id]

    def get_or_create(self, session_id: str) -> AdminConsole:
        """Return the console for a session id, creating it if this process has none.

        Args:
            session_id: Id from the signed session cookie

        Returns:
            The browser's console
        """
        console = self.get(session_id)
        if console is not None:
            return console

        if len(self._consoles) >= self.max_sessions:
            self._evict()

        console = self.console_factory()
        self._consoles[session_id] = console
        return console

    def _evict(self) -> None:
        """Drop the least recently used signed-out console, else the least recently used one."""
        victim = next(
            (sid for sid, console in self._consoles.items() if not console.state.is_authenticated),
            next(iter(self._consoles)),
        )
        self._consoles.pop(victim).reset()
        logger.info("Console session store full, evicted least recently used session")

    def discard(self, session_id: str | None) -> None:
        if session_id is None:
            return
        console = self._consoles.pop(session_id, None)
        if console is not None:
            console.reset()

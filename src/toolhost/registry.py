# registry.py
# Observable in-memory store of tool contracts, keyed by name.
#
# Backs the substitute host and feeds the harness. Every mutation notifies all
# current listeners synchronously with the post-mutation snapshot.
#
# Listeners must not mutate the registry from inside their callback; the
# outcome of doing so is undefined and not guarded against.

import logging
from typing import Callable, Iterable

from toolhost.models import ToolContract

logger = logging.getLogger(__name__)

ToolRegistryListener = Callable[[list[ToolContract]], None]


class ToolRegistry:
    """Name-unique tool store with subscribe/notify. Insertion order is kept."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolContract] = {}
        self._listeners: list[ToolRegistryListener] = []

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def register(self, tool: ToolContract) -> None:
        """Add or replace a tool. The last registration for a name wins."""
        self._tools[tool.name] = tool
        logger.debug("Registered tool %r (%d total)", tool.name, len(self._tools))
        self._notify()

    def unregister(self, name: str) -> None:
        """Remove a tool by name. Absent names are a no-op (listeners still fire)."""
        self._tools.pop(name, None)
        logger.debug("Unregistered tool %r", name)
        self._notify()

    def replace_all(self, tools: Iterable[ToolContract]) -> None:
        self._tools.clear()
        for tool in tools:
            self._tools[tool.name] = tool
        self._notify()

    def clear(self) -> None:
        self._tools.clear()
        self._notify()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, name: str) -> ToolContract | None:
        return self._tools.get(name)

    def list_all(self) -> list[ToolContract]:
        return list(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, listener: ToolRegistryListener) -> Callable[[], None]:
        """
        Add a listener. Returns a closure that removes exactly this
        subscription; calling it more than once is a no-op.
        """
        self._listeners.append(listener)
        subscribed = True

        def unsubscribe() -> None:
            nonlocal subscribed
            if not subscribed:
                return
            subscribed = False
            self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        tools = self.list_all()
        for listener in list(self._listeners):
            listener(tools)

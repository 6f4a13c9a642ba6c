# devtools.py
# Interactive terminal front end for the Harness.
#
# Reads a command line, turns it into a harness intent, and re-renders from
# the snapshots the harness publishes. Live registry changes (tools added or
# removed by other coroutines) show up on the next render.

import asyncio
import logging
from typing import Callable

from rich.console import Console
from rich.prompt import Prompt

from toolhost import display
from toolhost.agent import Agent, ConsoleAgent, MockAgent
from toolhost.harness import Harness
from toolhost.host import HostContext, get_host_context
from toolhost.models import ControlKind, HarnessSnapshot, HarnessStatus

logger = logging.getLogger(__name__)

Ask = Callable[[str], str]

_running: "DevConsole | None" = None


class DevConsole:
    """
    Text-mode dev panel.

    ask is the line reader; it defaults to rich's Prompt and is swapped out
    in tests. It is called from a worker thread so tools keep running.
    """

    def __init__(
        self,
        harness: Harness,
        out: Console | None = None,
        ask: Ask | None = None,
    ) -> None:
        self._harness = harness
        self._out = out or display.console
        self._ask = ask or (lambda label: Prompt.ask(label, default="", console=self._out))
        self._unsubscribe = harness.subscribe(self._on_snapshot)

    @property
    def harness(self) -> Harness:
        return self._harness

    def _on_snapshot(self, snapshot: HarnessSnapshot) -> None:
        if snapshot.status is not HarnessStatus.EXECUTING:
            display.render(snapshot, self._out)

    async def _read(self, label: str) -> str:
        return await asyncio.to_thread(self._ask, label)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def _collect_and_submit(self) -> None:
        snapshot = self._harness.snapshot()
        values: dict[str, str] = {}
        for field in snapshot.form:
            if field.control is ControlKind.TOGGLE:
                continue
            label = f"{field.name} ({display.control_hint(field)})"
            values[field.name] = await self._read(label)

        display.notice(f"Executing {snapshot.selected_tool.name}…", self._out)
        await self._harness.submit(values)

    def _toggle(self, name: str) -> None:
        snapshot = self._harness.snapshot()
        field = next((f for f in snapshot.form if f.name == name), None)
        if field is None or field.control is not ControlKind.TOGGLE:
            display.warning(f"No toggle named {name!r}.", self._out)
            return
        self._harness.set_toggle(name, not snapshot.toggles.get(name, False))

    def _select(self, command: str) -> None:
        tools = self._harness.tools
        name = command
        if command.isdigit() and 1 <= int(command) <= len(tools):
            name = tools[int(command) - 1].name
        if not self._harness.select_tool(name):
            display.warning(f"No tool {command!r}.", self._out)

    async def handle(self, command: str) -> bool:
        """Apply one command line. Returns False when the user quits."""
        command = command.strip()
        if not command:
            return True
        verb, _, arg = command.partition(" ")

        if verb == "q":
            return False
        if verb == "m":
            self._harness.toggle_minimized()
        elif self._harness.selected_tool_name is None:
            self._select(command)
        elif verb == "b":
            self._harness.back()
        elif verb == "e":
            await self._collect_and_submit()
        elif verb == "t" and arg:
            self._toggle(arg.strip())
        else:
            display.warning(f"Unknown command {command!r}.", self._out)
        return True

    async def run(self) -> None:
        display.banner(self._harness.host_kind, self._out)
        display.render(self._harness.snapshot(), self._out)
        try:
            while await self.handle(await self._read(">")):
                pass
        except (EOFError, KeyboardInterrupt):
            pass
        finally:
            self.close()

    def close(self) -> None:
        global _running
        self._unsubscribe()
        self._harness.close()
        if _running is self:
            _running = None


def enable_dev_mode(
    context: HostContext | None = None,
    agent: Agent | None = None,
    out: Console | None = None,
    ask: Ask | None = None,
) -> DevConsole:
    """
    Build the dev console for the given (or process-wide) host context.

    Only one console runs per process; a second call warns and returns the
    existing one.
    """
    global _running
    if _running is not None:
        logger.warning("Dev console already running")
        return _running

    context = context or get_host_context()
    if agent is None:
        agent = ConsoleAgent(out) if context.settings.interactive else MockAgent()
    _running = DevConsole(Harness(context.adapter, agent), out=out, ask=ask)
    return _running

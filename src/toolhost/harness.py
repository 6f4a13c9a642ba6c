# harness.py
# Interactive test harness, as a pure state machine.
#
# The Harness owns selection, execution and result state. It never draws
# anything: renderers subscribe to HarnessSnapshot updates and feed user
# intents back through select_tool / submit / back / toggle_minimized /
# set_toggle.
#
# State flow:
#   IDLE (no tools) / LISTING → select_tool → DETAIL → submit → EXECUTING
#   → RESULT → back → LISTING
#
# Live tool-set changes that remove the selected tool force a return to
# LISTING and drop the last result.

import json
import logging
import time
from typing import Any, Callable, Mapping

from toolhost.agent import Agent, MockAgent
from toolhost.host import HostAdapter, HostBackend, get_host_context
from toolhost.models import (
    ControlKind,
    FormField,
    HarnessSnapshot,
    HarnessStatus,
    HostKind,
    RunResult,
    TextContent,
    ToolContract,
    ToolResponse,
)
from toolhost.schema import resolve_property

logger = logging.getLogger(__name__)

HarnessListener = Callable[[HarnessSnapshot], None]

_TRUE_STRINGS = {"1", "true", "yes", "on"}


# ---------------------------------------------------------------------------
# Form derivation and parsing
# ---------------------------------------------------------------------------


def _choices(prop: dict[str, Any]) -> list[Any]:
    if isinstance(prop.get("enum"), list):
        return list(prop["enum"])
    # A single-value Literal is written as const.
    if "const" in prop:
        return [prop["const"]]
    return []


def _control_for(prop: dict[str, Any]) -> ControlKind:
    kind = prop.get("type")
    if _choices(prop):
        return ControlKind.CHOICE
    if kind == "boolean":
        return ControlKind.TOGGLE
    if kind in ("number", "integer"):
        return ControlKind.NUMBER
    if kind == "array":
        return ControlKind.STRUCTURED
    if kind == "object" and not prop.get("properties"):
        return ControlKind.STRUCTURED
    return ControlKind.TEXT


def derive_form(schema: dict[str, Any]) -> list[FormField]:
    """One FormField per top-level schema property, in declaration order."""
    root = resolve_property(schema, schema)
    properties = root.get("properties") or {}
    required = set(root.get("required") or [])

    fields: list[FormField] = []
    for name, raw in properties.items():
        prop = resolve_property(raw if isinstance(raw, dict) else {}, schema)
        fields.append(
            FormField(
                name=name,
                control=_control_for(prop),
                schema_type=prop.get("type") if isinstance(prop.get("type"), str) else None,
                required=name in required,
                description=prop.get("description"),
                default=prop.get("default"),
                choices=_choices(prop),
            )
        )
    return fields


def _parse_number(field: FormField, text: str) -> Any:
    try:
        if field.schema_type == "integer":
            return int(text)
        return float(text)
    except ValueError:
        # Integer fields may still receive "3.0"; validation decides.
        try:
            return float(text)
        except ValueError:
            return text


def _parse_value(field: FormField, value: Any) -> Any:
    if not isinstance(value, str):
        return value
    text = value.strip()

    if field.control is ControlKind.TOGGLE:
        return text.lower() in _TRUE_STRINGS
    if field.control is ControlKind.NUMBER:
        return _parse_number(field, text)
    if field.control is ControlKind.STRUCTURED:
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return value
    if field.control is ControlKind.CHOICE:
        for choice in field.choices:
            if str(choice) == value:
                return choice
        return value
    return value


def parse_form(
    fields: list[FormField],
    values: Mapping[str, Any],
    toggles: Mapping[str, bool] | None = None,
) -> dict[str, Any]:
    """
    Turn submitted form values into tool input.

    Empty strings and missing keys are omitted, not defaulted. Toggles absent
    from values are read from the control state in toggles.
    """
    toggles = toggles or {}
    parsed: dict[str, Any] = {}

    for field in fields:
        if field.name in values:
            value = values[field.name]
            if value is None or (isinstance(value, str) and value.strip() == ""):
                if field.control is not ControlKind.TOGGLE:
                    continue
                value = toggles.get(field.name, False)
            parsed[field.name] = _parse_value(field, value)
        elif field.control is ControlKind.TOGGLE:
            parsed[field.name] = bool(toggles.get(field.name, False))

    return parsed


# ---------------------------------------------------------------------------
# Harness
# ---------------------------------------------------------------------------


class Harness:
    """
    Drives ad-hoc tool invocations for one session.

    The backend is resolved once, at construction, and kept for the whole
    session so the tool list does not flip between hosts under the user.
    """

    def __init__(
        self,
        adapter: HostAdapter | None = None,
        agent: Agent | None = None,
    ) -> None:
        self._adapter = adapter or get_host_context().adapter
        self._backend: HostBackend = self._adapter.backend()
        self._agent: Agent = agent or MockAgent()

        self._selected: str | None = None
        self._last_result: RunResult | None = None
        self._is_executing = False
        self._is_minimized = False
        self._toggles: dict[str, bool] = {}
        self._listeners: list[HarnessListener] = []

        self._unsubscribe = self._backend.subscribe(self._on_tools_changed)
        logger.debug("Harness started on %s host", self._backend.kind.value)

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def host_kind(self) -> HostKind:
        return self._backend.kind

    @property
    def tools(self) -> list[ToolContract]:
        return self._backend.list()

    @property
    def selected_tool_name(self) -> str | None:
        return self._selected

    @property
    def last_result(self) -> RunResult | None:
        return self._last_result

    @property
    def is_executing(self) -> bool:
        return self._is_executing

    @property
    def is_minimized(self) -> bool:
        return self._is_minimized

    def _selected_tool(self, tools: list[ToolContract]) -> ToolContract | None:
        if self._selected is None:
            return None
        return next((tool for tool in tools if tool.name == self._selected), None)

    @property
    def status(self) -> HarnessStatus:
        if self._is_executing:
            return HarnessStatus.EXECUTING
        if self._selected is not None:
            return HarnessStatus.RESULT if self._last_result else HarnessStatus.DETAIL
        return HarnessStatus.LISTING if self.tools else HarnessStatus.IDLE

    def snapshot(self) -> HarnessSnapshot:
        tools = self.tools
        selected = self._selected_tool(tools)
        return HarnessSnapshot(
            status=self.status,
            host_kind=self.host_kind,
            tools=tools,
            selected_tool=selected,
            form=derive_form(selected.input_schema) if selected else [],
            toggles=dict(self._toggles),
            last_result=self._last_result,
            is_executing=self._is_executing,
            is_minimized=self._is_minimized,
        )

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, listener: HarnessListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def _on_tools_changed(self, tools: list[ToolContract]) -> None:
        if self._selected is not None and not any(t.name == self._selected for t in tools):
            logger.debug("Selected tool %r disappeared; back to listing", self._selected)
            self._clear_selection()
        self._emit()

    def close(self) -> None:
        """Stop following tool-set changes."""
        self._unsubscribe()
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------

    def _clear_selection(self) -> None:
        self._selected = None
        self._last_result = None
        self._toggles = {}

    def select_tool(self, name: str) -> bool:
        """Open a tool's detail view. No-op when the tool is not in the live set."""
        if self._backend.get(name) is None:
            return False
        self._selected = name
        self._last_result = None
        self._toggles = {}
        self._emit()
        return True

    def back(self) -> None:
        self._clear_selection()
        self._emit()

    def toggle_minimized(self) -> None:
        self._is_minimized = not self._is_minimized
        self._emit()

    def set_toggle(self, field: str, on: bool) -> None:
        """Record the on/off state of a boolean control."""
        if self._selected is None:
            return
        self._toggles[field] = on
        self._emit()

    async def submit(self, form_values: Mapping[str, Any]) -> RunResult | None:
        """
        Run the selected tool with the submitted form values.

        Returns None when nothing is selected or an invocation is already in
        flight. The result is recorded only if the same tool is still
        selected when the invocation resolves.
        """
        if self._selected is None or self._is_executing:
            return None
        tool = self._backend.get(self._selected)
        if tool is None:
            return None

        raw_input = parse_form(derive_form(tool.input_schema), form_values, self._toggles)
        self._is_executing = True
        self._emit()

        started = time.perf_counter()
        try:
            response = await self._backend.invoke(tool.name, raw_input, self._agent)
        except Exception as exc:
            logger.warning("Invocation of %r failed in the host: %s", tool.name, exc)
            response = ToolResponse(content=[TextContent(text=str(exc))], is_error=True)
        finally:
            self._is_executing = False

        result = RunResult(
            response=response,
            elapsed_ms=round((time.perf_counter() - started) * 1000),
        )
        if self._selected == tool.name:
            self._last_result = result
        self._emit()
        return result

# host.py
# Host surfaces, the substitute host and the adapter that picks between them.
#
# A "native" host is supplied by the hosting environment through
# HostContext.attach_native(). When none is attached (or settings force it),
# the SubstituteHost built on the observable ToolRegistry stands in.
#
# Backend selection policy: HostAdapter resolves a backend on every call, so a
# native host attached or detached mid-session is honoured. The harness pins
# the backend it resolved at construction for the lifetime of its session.

import json
import logging
from typing import Any, Callable, Iterable, Protocol, runtime_checkable

from pydantic import ValidationError

from toolhost.agent import Agent, MockAgent
from toolhost.config import Settings, load_settings
from toolhost.errors import ToolNotFoundError
from toolhost.models import HostKind, ToolContract, ToolResponse
from toolhost.registry import ToolRegistry, ToolRegistryListener
from toolhost.responses import error_content, text_content

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Host surfaces
# ---------------------------------------------------------------------------


@runtime_checkable
class ModelContext(Protocol):
    """Surface an application uses to publish tools."""

    def provide_context(self, tools: Iterable[ToolContract]) -> None: ...

    def clear_context(self) -> None: ...

    def register_tool(self, tool: ToolContract) -> None: ...

    def unregister_tool(self, name: str) -> None: ...


@runtime_checkable
class ModelContextTesting(Protocol):
    """Surface an agent (or a test) uses to discover and run tools."""

    def list_tools(self) -> list[ToolContract]: ...

    async def execute_tool(self, name: str, input_args: str) -> ToolResponse | str: ...

    def register_tools_changed_callback(self, callback: Callable[[], None]) -> Any:
        """May return a callable that removes the callback again."""


class SubstituteHost:
    """In-process stand-in for a native host, backed by a ToolRegistry."""

    def __init__(self, registry: ToolRegistry) -> None:
        self._registry = registry

    # -- ModelContext ---------------------------------------------------

    def provide_context(self, tools: Iterable[ToolContract]) -> None:
        self._registry.replace_all(tools)

    def clear_context(self) -> None:
        self._registry.clear()

    def register_tool(self, tool: ToolContract) -> None:
        self._registry.register(tool)

    def unregister_tool(self, name: str) -> None:
        self._registry.unregister(name)

    # -- ModelContextTesting --------------------------------------------

    def list_tools(self) -> list[ToolContract]:
        return self._registry.list_all()

    async def execute_tool(
        self, name: str, input_args: str, agent: Agent | None = None
    ) -> ToolResponse:
        tool = self._registry.get(name)
        if tool is None:
            raise ToolNotFoundError(f"Tool '{name}' is not registered.")
        try:
            raw_input = json.loads(input_args) if input_args.strip() else {}
        except json.JSONDecodeError as exc:
            return error_content(f"Validation error: input is not valid JSON ({exc.msg})")
        return await tool.execute(raw_input, agent or MockAgent())

    def register_tools_changed_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        return self._registry.subscribe(lambda _tools: callback())


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


class HostBackend(Protocol):
    """Uniform surface the adapter and the harness talk to."""

    kind: HostKind

    def list(self) -> list[ToolContract]: ...

    def get(self, name: str) -> ToolContract | None: ...

    def register(self, tool: ToolContract) -> None: ...

    def unregister(self, name: str) -> None: ...

    def provide_context(self, tools: Iterable[ToolContract]) -> None: ...

    def clear_context(self) -> None: ...

    async def invoke(self, name: str, raw_input: Any, agent: Agent | None = None) -> ToolResponse: ...

    def subscribe(self, listener: ToolRegistryListener) -> Callable[[], None]: ...


class SubstituteBackend:
    kind = HostKind.SUBSTITUTE

    def __init__(self, host: SubstituteHost, registry: ToolRegistry) -> None:
        self._host = host
        self._registry = registry

    def list(self) -> list[ToolContract]:
        return self._registry.list_all()

    def get(self, name: str) -> ToolContract | None:
        return self._registry.get(name)

    def register(self, tool: ToolContract) -> None:
        self._host.register_tool(tool)

    def unregister(self, name: str) -> None:
        self._host.unregister_tool(name)

    def provide_context(self, tools: Iterable[ToolContract]) -> None:
        self._host.provide_context(tools)

    def clear_context(self) -> None:
        self._host.clear_context()

    async def invoke(self, name: str, raw_input: Any, agent: Agent | None = None) -> ToolResponse:
        tool = self._registry.get(name)
        if tool is None:
            raise ToolNotFoundError(f"Tool '{name}' is not registered.")
        return await tool.execute(raw_input, agent or MockAgent())

    def subscribe(self, listener: ToolRegistryListener) -> Callable[[], None]:
        return self._registry.subscribe(listener)


def _parse_native_result(result: Any) -> ToolResponse:
    if isinstance(result, ToolResponse):
        return result
    if isinstance(result, (bytes, bytearray)):
        result = result.decode("utf-8")
    if isinstance(result, str):
        try:
            result = json.loads(result)
        except json.JSONDecodeError:
            logger.warning("Native host returned non-JSON result; wrapping as text.")
            return text_content(result)
    try:
        return ToolResponse.model_validate(result)
    except ValidationError:
        logger.warning("Native host result is not a tool response; wrapping as text.")
        return text_content(json.dumps(result, indent=2, default=str))


class NativeBackend:
    """
    Delegates to a host supplied by the environment. Publishing goes through
    its ModelContext; listing, invocation and change callbacks go through its
    ModelContextTesting surface when one is present.
    """

    kind = HostKind.NATIVE

    def __init__(self, context: ModelContext, testing: ModelContextTesting | None) -> None:
        self._context = context
        self._testing = testing

    def list(self) -> list[ToolContract]:
        if self._testing is None:
            return []
        return list(self._testing.list_tools())

    def get(self, name: str) -> ToolContract | None:
        return next((tool for tool in self.list() if tool.name == name), None)

    def register(self, tool: ToolContract) -> None:
        self._context.register_tool(tool)

    def unregister(self, name: str) -> None:
        self._context.unregister_tool(name)

    def provide_context(self, tools: Iterable[ToolContract]) -> None:
        self._context.provide_context(list(tools))

    def clear_context(self) -> None:
        self._context.clear_context()

    async def invoke(self, name: str, raw_input: Any, agent: Agent | None = None) -> ToolResponse:
        # The native host mediates user interaction itself; agent is unused.
        if self._testing is None:
            raise ToolNotFoundError(
                f"Tool '{name}' cannot be invoked: native host exposes no testing surface."
            )
        payload = json.dumps(raw_input if raw_input is not None else {}, default=str)
        return _parse_native_result(await self._testing.execute_tool(name, payload))

    def subscribe(self, listener: ToolRegistryListener) -> Callable[[], None]:
        if self._testing is None:
            return lambda: None
        # Emptied on unsubscribe so a host that cannot drop the callback no
        # longer holds the listener.
        listeners = [listener]

        def on_change() -> None:
            for current in list(listeners):
                current(self.list())

        handle = self._testing.register_tools_changed_callback(on_change)

        def unsubscribe() -> None:
            if not listeners:
                return
            listeners.clear()
            if callable(handle):
                handle()

        return unsubscribe


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------


class HostAdapter:
    """Routes every operation to the native host when present, else the substitute."""

    def __init__(self, context: "HostContext") -> None:
        self._ctx = context

    def is_native_host_available(self) -> bool:
        return self._ctx.native_context is not None and not self._ctx.settings.force_substitute

    def backend(self) -> HostBackend:
        if self.is_native_host_available():
            return NativeBackend(self._ctx.native_context, self._ctx.native_testing)
        return SubstituteBackend(self._ctx.substitute, self._ctx.registry)

    @property
    def kind(self) -> HostKind:
        return HostKind.NATIVE if self.is_native_host_available() else HostKind.SUBSTITUTE

    def list(self) -> list[ToolContract]:
        return self.backend().list()

    def get(self, name: str) -> ToolContract | None:
        return self.backend().get(name)

    def register(self, tool: ToolContract) -> None:
        backend = self.backend()
        if backend.kind is HostKind.SUBSTITUTE and not self._ctx.settings.is_production:
            logger.debug(
                "Using substitute host for tool %r. Native host not available.", tool.name
            )
        backend.register(tool)

    def unregister(self, name: str) -> None:
        self.backend().unregister(name)

    def provide_context(self, tools: Iterable[ToolContract]) -> None:
        self.backend().provide_context(tools)

    def clear_context(self) -> None:
        self.backend().clear_context()

    async def invoke(self, name: str, raw_input: Any, agent: Agent | None = None) -> ToolResponse:
        return await self.backend().invoke(name, raw_input, agent)

    def subscribe(self, listener: ToolRegistryListener) -> Callable[[], None]:
        return self.backend().subscribe(listener)


# ---------------------------------------------------------------------------
# Process-wide context
# ---------------------------------------------------------------------------


class HostContext:
    """
    Owns the registry, the substitute host, any attached native host and the
    adapter. One instance per process via get_host_context(); tests build
    their own or call reset_host_context() between cases.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self.registry = ToolRegistry()
        self.substitute = SubstituteHost(self.registry)
        self.adapter = HostAdapter(self)
        self._native_context: ModelContext | None = None
        self._native_testing: ModelContextTesting | None = None

    @property
    def native_context(self) -> ModelContext | None:
        return self._native_context

    @property
    def native_testing(self) -> ModelContextTesting | None:
        return self._native_testing

    def attach_native(
        self, model_context: ModelContext, testing: ModelContextTesting | None = None
    ) -> None:
        self._native_context = model_context
        self._native_testing = testing
        logger.debug("Native host attached (testing surface: %s)", testing is not None)

    def detach_native(self) -> None:
        self._native_context = None
        self._native_testing = None
        logger.debug("Native host detached")


_context: HostContext | None = None


def get_host_context() -> HostContext:
    """Return the process-wide context, creating it from the environment on first use."""
    global _context
    if _context is None:
        _context = HostContext(load_settings())
    return _context


def reset_host_context() -> None:
    """Drop the process-wide context and empty its registry."""
    global _context
    if _context is not None:
        _context.registry.clear()
    _context = None

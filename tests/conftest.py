import json

import pytest

from toolhost.agent import MockAgent
from toolhost.config import Settings
from toolhost.host import HostContext, reset_host_context


class FakeNativeHost:
    """Stands in for an environment-provided host exposing both surfaces."""

    def __init__(self) -> None:
        self.tools = {}
        self.callbacks = []
        self.calls = []

    def provide_context(self, tools):
        self.tools = {tool.name: tool for tool in tools}
        self._changed()

    def clear_context(self):
        self.tools = {}
        self._changed()

    def register_tool(self, tool):
        self.tools[tool.name] = tool
        self._changed()

    def unregister_tool(self, name):
        self.tools.pop(name, None)
        self._changed()

    def list_tools(self):
        return list(self.tools.values())

    async def execute_tool(self, name, input_args):
        self.calls.append((name, input_args))
        response = await self.tools[name].execute(json.loads(input_args), MockAgent())
        return response.model_dump_json(by_alias=True, exclude_none=True)

    def register_tools_changed_callback(self, callback):
        self.callbacks.append(callback)
        return lambda: self.callbacks.remove(callback)

    def _changed(self):
        for callback in list(self.callbacks):
            callback()


@pytest.fixture(autouse=True)
def _fresh_host_context():
    reset_host_context()
    yield
    reset_host_context()


@pytest.fixture
def context():
    return HostContext(Settings())


@pytest.fixture
def native_host():
    return FakeNativeHost()

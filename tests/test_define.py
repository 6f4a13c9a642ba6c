import asyncio
import json

import pytest
from pydantic import BaseModel, Field

from toolhost.agent import MockAgent
from toolhost.define import define_tool
from toolhost.errors import SchemaConversionError
from toolhost.models import InteractionResult, TextContent, ToolAnnotations, ToolResponse
from toolhost.responses import error_content, json_content, text_content, wrap_response


class NoInput(BaseModel):
    pass


class PersonInput(BaseModel):
    name: str
    age: int


class CountInput(BaseModel):
    count: int = Field(..., ge=1)


# ---------------------------------------------------------------------------
# Response normalizer
# ---------------------------------------------------------------------------


def test_wrap_response_string():
    response = wrap_response("Just a string")
    assert response.to_wire() == {"content": [{"type": "text", "text": "Just a string"}]}


def test_wrap_response_passes_tool_response_through():
    original = ToolResponse(content=[TextContent(text="boom")], is_error=True)
    assert wrap_response(original) is original


def test_wrap_response_validates_content_mapping():
    response = wrap_response(
        {"content": [{"type": "image", "data": "AAAA", "mimeType": "image/png"}], "isError": False}
    )
    assert response.is_error is False
    assert response.content[0].mime_type == "image/png"


def test_wrap_response_keeps_extra_keys():
    response = wrap_response(
        {"content": [{"type": "text", "text": "hi"}], "_meta": {"trace": "abc"}}
    )
    assert response.to_wire() == {
        "content": [{"type": "text", "text": "hi"}],
        "_meta": {"trace": "abc"},
    }


def test_empty_content_mapping_is_an_execution_error():
    tool = define_tool("empty", "d", PersonInput, lambda args, agent: {"content": []})
    result = asyncio.run(tool.execute({"name": "Ada", "age": 36}))
    assert result.is_error is True
    assert result.content[0].text.startswith("Execution error: ")


def test_wrap_response_serializes_other_values():
    response = wrap_response({"total": 3, "items": ["a"]})
    assert response.content[0].text == json.dumps({"total": 3, "items": ["a"]}, indent=2)
    assert response.is_error is None


def test_json_content_dumps_models():
    response = json_content(PersonInput(name="Ada", age=36))
    assert json.loads(response.content[0].text) == {"name": "Ada", "age": 36}


def test_error_and_text_helpers():
    assert error_content("nope").to_wire() == {
        "content": [{"type": "text", "text": "nope"}],
        "isError": True,
    }
    assert text_content("ok").is_error is None


# ---------------------------------------------------------------------------
# Definition
# ---------------------------------------------------------------------------


def test_define_tool_metadata():
    tool = define_tool(
        name="test-tool",
        description="A test tool",
        input_schema=PersonInput,
        execute=lambda args, agent: f"{args.name} is {args.age}",
        annotations={"readOnlyHint": True, "audience": "dev"},
    )
    assert tool.name == "test-tool"
    assert tool.description == "A test tool"
    assert tool.schema is PersonInput
    assert tool.input_schema["type"] == "object"
    assert set(tool.input_schema["properties"]) == {"name", "age"}
    assert tool.annotations.read_only_hint is True
    assert tool.annotations.model_extra == {"audience": "dev"}
    assert tool.to_contract() is tool.contract


def test_schema_is_converted_once():
    tool = define_tool("t", "d", CountInput, lambda args, agent: "ok")
    first = tool.input_schema
    asyncio.run(tool.execute({"count": 2}))
    assert tool.input_schema is first
    assert tool.contract.input_schema is first


def test_unconvertible_schema_fails_at_definition():
    class NotASchema:
        pass

    with pytest.raises(SchemaConversionError):
        define_tool("broken", "Bad schema", NotASchema, lambda args, agent: "never")


def test_contract_is_immutable():
    tool = define_tool("frozen", "d", NoInput, lambda args, agent: "ok")
    with pytest.raises(Exception):
        tool.contract.name = "other"


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def test_execute_with_valid_input():
    async def greet(args, agent):
        return f"Hello, {args.name}!"

    tool = define_tool("greeter", "Greets a person", PersonInput, greet)
    result = asyncio.run(tool.execute({"name": "World", "age": 1}))

    assert result.is_error is None
    assert len(result.content) == 1
    assert result.content[0] == TextContent(text="Hello, World!")


def test_validation_error_lists_every_path():
    tool = define_tool("person", "d", PersonInput, lambda args, agent: "never")
    result = asyncio.run(tool.execute({"age": "old"}))

    text = result.content[0].text
    assert result.is_error is True
    assert text.startswith("Validation error: ")
    assert "name: Field required" in text
    assert "age: " in text
    assert ", " in text


def test_validation_error_for_non_mapping_input():
    tool = define_tool("person", "d", PersonInput, lambda args, agent: "never")
    result = asyncio.run(tool.execute("not an object"))
    assert result.is_error is True
    assert "(input): " in result.content[0].text


def test_handler_not_called_on_invalid_input():
    calls = []
    tool = define_tool("count", "d", CountInput, lambda args, agent: calls.append(args))
    asyncio.run(tool.execute({"count": 0}))
    assert calls == []


def test_passthrough_response_keeps_error_flag():
    custom = ToolResponse(content=[TextContent(text="soft failure")], is_error=True)

    async def handler(args, agent):
        return custom

    tool = define_tool("passthrough", "d", NoInput, handler)
    assert asyncio.run(tool.execute({})) is custom


def test_execution_error_is_trapped():
    async def explode(args, agent):
        raise RuntimeError("Something went wrong")

    tool = define_tool("error-thrower", "Throws an error", NoInput, explode)
    result = asyncio.run(tool.execute({}))

    assert result.is_error is True
    assert result.content[0].text == "Execution error: Something went wrong"


def test_execution_error_without_message_uses_type_name():
    async def explode(args, agent):
        raise KeyError

    tool = define_tool("bare", "d", NoInput, explode)
    result = asyncio.run(tool.execute({}))
    assert result.content[0].text == "Execution error: KeyError"


def test_malformed_passthrough_becomes_execution_error():
    tool = define_tool("empty", "d", NoInput, lambda args, agent: {"content": []})
    result = asyncio.run(tool.execute({}))
    assert result.is_error is True
    assert result.content[0].text.startswith("Execution error: ")


def test_sync_handler_is_accepted():
    tool = define_tool("sync", "d", CountInput, lambda args, agent: {"count": args.count})
    result = asyncio.run(tool.execute({"count": 4}))
    assert json.loads(result.content[0].text) == {"count": 4}


def test_count_scenario():
    async def count(args, agent):
        return f"Count: {args.count}"

    tool = define_tool("count", "Count things", CountInput, count)

    rejected = asyncio.run(tool.execute({"count": 0}))
    assert rejected.is_error is True
    assert "count" in rejected.content[0].text

    accepted = asyncio.run(tool.execute({"count": 3}))
    assert accepted.to_wire() == {"content": [{"type": "text", "text": "Count: 3"}]}


# ---------------------------------------------------------------------------
# Agent hand-off
# ---------------------------------------------------------------------------


def test_agent_is_passed_to_handler():
    seen = []

    async def answer(request):
        seen.append(request)
        return InteractionResult(confirmed=True)

    async def handler(args, agent):
        result = await agent.request_user_interaction(prompt="Confirm?")
        return "Confirmed" if result.confirmed else "Cancelled"

    tool = define_tool("agent-user", "Uses agent", NoInput, handler)
    result = asyncio.run(tool.execute({}, MockAgent(on_user_interaction=answer)))

    assert seen[0].prompt == "Confirm?"
    assert seen[0].kind == "confirmation"
    assert result.content[0].text == "Confirmed"


def test_default_agent_confirms():
    async def handler(args, agent):
        result = await agent.request_user_interaction(prompt="Delete?", type="confirmation")
        return "Deleted" if result.confirmed else "Kept"

    tool = define_tool("delete", "d", NoInput, handler,
                       annotations=ToolAnnotations(destructive_hint=True))
    result = asyncio.run(asyncio.wait_for(tool.execute({}), timeout=1))
    assert result.content[0].text == "Deleted"


def test_bad_interaction_request_is_an_execution_error():
    async def handler(args, agent):
        await agent.request_user_interaction(prompt="Pick", type="selection")
        return "unreachable"

    tool = define_tool("picker", "d", NoInput, handler)
    result = asyncio.run(tool.execute({}))
    assert result.is_error is True
    assert "Execution error" in result.content[0].text


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def test_register_and_unregister_with_context(context):
    tool = define_tool("temporary", "Will be removed", NoInput, lambda args, agent: "OK")

    tool.register(context)
    registered = context.registry.get("temporary")
    assert registered is not None
    assert registered.name == "temporary"
    assert registered.input_schema == tool.input_schema

    tool.unregister(context)
    assert context.registry.get("temporary") is None


def test_register_uses_process_context_by_default():
    from toolhost.host import get_host_context

    tool = define_tool("registerable", "Can be registered", NoInput, lambda args, agent: "OK")
    tool.register()
    assert get_host_context().registry.get("registerable") is tool.contract

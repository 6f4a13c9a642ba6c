import asyncio
import json

import pytest

from toolhost.agent import MockAgent
from toolhost.models import InteractionResult
from toolhost.tools import TOOLS

BY_NAME = {tool.name: tool for tool in TOOLS}


def _run(name, args, agent=None):
    return asyncio.run(BY_NAME[name].execute(args, agent))


def _answer(result: InteractionResult):
    async def handler(request):
        return result

    return MockAgent(on_user_interaction=handler)


# ---------------------------------------------------------------------------
# Read-only tools
# ---------------------------------------------------------------------------


def test_tool_names_are_unique():
    assert len(BY_NAME) == len(TOOLS)


def test_echo():
    assert _run("echo", {"message": "hi"}).content[0].text == "hi"


def test_count_rejects_zero():
    result = _run("count", {"count": 0})
    assert result.is_error is True
    assert "count" in result.content[0].text


def test_summarize_truncation():
    result = _run("summarize", {"text": "a" * 5000})
    assert len(result.content[0].text) == 4000


# ---------------------------------------------------------------------------
# Interactive tools
# ---------------------------------------------------------------------------


def test_file_write_confirmed(tmp_path, monkeypatch):
    monkeypatch.setenv("TOOLHOST_WORKSPACE", str(tmp_path))
    result = _run("file_write", {"path": "notes/a.txt", "content": "ok"})

    payload = json.loads(result.content[0].text)
    assert payload["written"] is True
    assert (tmp_path / "notes" / "a.txt").read_text() == "ok"


def test_file_write_cancelled(tmp_path, monkeypatch):
    monkeypatch.setenv("TOOLHOST_WORKSPACE", str(tmp_path))
    result = _run("file_write", {"path": "a.txt"}, _answer(InteractionResult(confirmed=False)))

    assert result.is_error is None
    assert json.loads(result.content[0].text) == {"written": False, "reason": "cancelled by user"}
    assert not (tmp_path / "a.txt").exists()


def test_file_write_blocks_traversal(tmp_path, monkeypatch):
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    monkeypatch.setenv("TOOLHOST_WORKSPACE", str(workspace))

    result = _run("file_write", {"path": "../outside.txt", "content": "hack"})
    assert result.is_error is True
    assert result.content[0].text.startswith("Execution error: ")
    assert not (tmp_path / "outside.txt").exists()


def test_file_write_refuses_overwrite(tmp_path, monkeypatch):
    monkeypatch.setenv("TOOLHOST_WORKSPACE", str(tmp_path))
    (tmp_path / "a.txt").write_text("old")

    result = _run("file_write", {"path": "a.txt", "content": "new"})
    assert result.is_error is True
    assert (tmp_path / "a.txt").read_text() == "old"


@pytest.mark.parametrize(
    "answer, expected",
    [
        (InteractionResult(selection="green", confirmed=True), "You picked green."),
        (InteractionResult(confirmed=False), "Nothing picked."),
    ],
)
def test_pick(answer, expected):
    assert _run("pick", {}, _answer(answer)).content[0].text == expected


def test_greet_without_human_is_cancelled():
    assert _run("greet", {}).content[0].text == "Greeting cancelled."


def test_greet_formal():
    agent = _answer(InteractionResult(value="Ada", confirmed=True))
    assert _run("greet", {"tone": "formal"}, agent).content[0].text == "Good day, Ada."

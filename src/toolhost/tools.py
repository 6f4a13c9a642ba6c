# tools.py
# Sample tools for the dev console.
# run.py registers TOOLS; nothing in the core imports this module.

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from toolhost.agent import Agent
from toolhost.define import define_tool
from toolhost.models import ToolAnnotations


class EchoInput(BaseModel):
    message: str = Field(..., description="Text to send back.")


class CountInput(BaseModel):
    count: int = Field(..., ge=1, description="How many items to count.")


class SummarizeInput(BaseModel):
    text: str = Field(..., min_length=1)
    max_chars: int = Field(default=4000, ge=1, description="Truncate after this many characters.")


class FileWriteInput(BaseModel):
    path: str = Field(..., min_length=1, description="Relative to the workspace directory.")
    content: str = ""
    overwrite: bool = Field(default=False, description="Replace an existing file.")


class PickInput(BaseModel):
    question: str = "Pick a colour"
    options: list[str] = Field(default_factory=lambda: ["red", "green", "blue"])


class GreetInput(BaseModel):
    tone: Literal["formal", "casual"] = "casual"


async def _echo(args: EchoInput, agent: Agent) -> str:
    return args.message


async def _count(args: CountInput, agent: Agent) -> str:
    return f"Count: {args.count}"


async def _summarize(args: SummarizeInput, agent: Agent) -> str:
    text = args.text.strip()
    return text[: args.max_chars]


def _workspace() -> Path:
    return Path(os.getenv("TOOLHOST_WORKSPACE", "./workspace")).resolve()


async def _file_write(args: FileWriteInput, agent: Agent) -> dict:
    root = _workspace()
    target = (root / args.path).resolve()
    if not target.is_relative_to(root):
        raise PermissionError(f"{args.path} is outside the workspace")
    if target.exists() and not args.overwrite:
        raise FileExistsError(f"{args.path} exists; set overwrite to replace it")

    answer = await agent.request_user_interaction(
        prompt=f"Write {len(args.content)} bytes to {target}?", type="confirmation"
    )
    if not answer.confirmed:
        return {"written": False, "reason": "cancelled by user"}

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(args.content, encoding="utf-8")
    return {"written": True, "path": str(target), "bytes": len(args.content)}


async def _pick(args: PickInput, agent: Agent) -> str:
    answer = await agent.request_user_interaction(
        prompt=args.question, type="selection", choices=args.options
    )
    if not answer.confirmed or answer.selection is None:
        return "Nothing picked."
    return f"You picked {answer.selection}."


async def _greet(args: GreetInput, agent: Agent) -> str:
    answer = await agent.request_user_interaction(prompt="What is your name?", type="input")
    if not answer.confirmed or not answer.value:
        return "Greeting cancelled."
    if args.tone == "formal":
        return f"Good day, {answer.value}."
    return f"Hi {answer.value}!"


TOOLS = [
    define_tool("echo", "Return the message unchanged.", EchoInput, _echo,
                annotations=ToolAnnotations(read_only_hint=True)),
    define_tool("count", "Report a positive count.", CountInput, _count,
                annotations=ToolAnnotations(read_only_hint=True)),
    define_tool("summarize", "Trim text to a maximum length.", SummarizeInput, _summarize,
                annotations=ToolAnnotations(read_only_hint=True)),
    define_tool("file_write", "Write a file inside the workspace after confirmation.",
                FileWriteInput, _file_write,
                annotations=ToolAnnotations(destructive_hint=True, confirmation_hint=True)),
    define_tool("pick", "Ask the user to choose one option.", PickInput, _pick),
    define_tool("greet", "Ask for a name and greet it.", GreetInput, _greet),
]

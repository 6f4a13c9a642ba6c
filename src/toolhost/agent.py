# agent.py
# Interaction brokers handed to tool handlers.
#
# A handler awaits agent.request_user_interaction(...) to ask a human for a
# confirmation, a line of text or a pick from a list. The call suspends the
# handler only; blocking terminal prompts run in a worker thread.

import asyncio
import logging
from typing import Any, Awaitable, Callable, Protocol

from rich.console import Console
from rich.prompt import Confirm, Prompt

from toolhost.models import InteractionRequest, InteractionResult

logger = logging.getLogger(__name__)

InteractionHandler = Callable[[InteractionRequest], Awaitable[InteractionResult]]


class Agent(Protocol):
    async def request_user_interaction(
        self, request: InteractionRequest | None = None, **fields: Any
    ) -> InteractionResult: ...


def _coerce_request(request: InteractionRequest | None, fields: dict[str, Any]) -> InteractionRequest:
    if request is not None:
        return request
    return InteractionRequest.model_validate(fields)


def _check_selection(request: InteractionRequest, result: InteractionResult) -> InteractionResult:
    """A selection outside the offered choices counts as declined."""
    if request.kind == "selection" and result.confirmed and result.selection not in request.choices:
        logger.debug("Selection %r is not one of %r; declining.", result.selection, request.choices)
        return InteractionResult(confirmed=False)
    return result


class MockAgent:
    """
    Broker for runs with no human attached.

    Confirmations are accepted, free-text input is declined and any other
    kind is accepted without a value. Pass on_user_interaction to answer
    requests yourself.
    """

    def __init__(self, on_user_interaction: InteractionHandler | None = None) -> None:
        self._handler = on_user_interaction

    async def request_user_interaction(
        self, request: InteractionRequest | None = None, **fields: Any
    ) -> InteractionResult:
        request = _coerce_request(request, fields)
        if self._handler is not None:
            return _check_selection(request, await self._handler(request))

        logger.debug("Auto-answering %s interaction: %s", request.kind, request.prompt)
        if request.kind == "input":
            return InteractionResult(confirmed=False)
        return InteractionResult(confirmed=True)


class ConsoleAgent:
    """Asks the person at the terminal through rich prompts."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    async def request_user_interaction(
        self, request: InteractionRequest | None = None, **fields: Any
    ) -> InteractionResult:
        request = _coerce_request(request, fields)
        return await asyncio.to_thread(self._ask, request)

    def _ask(self, request: InteractionRequest) -> InteractionResult:
        try:
            if request.kind == "confirmation":
                return InteractionResult(
                    confirmed=Confirm.ask(request.prompt, console=self._console)
                )
            if request.kind == "input":
                value = Prompt.ask(request.prompt, console=self._console)
                return InteractionResult(value=value, confirmed=True)
            return self._ask_selection(request)
        except (EOFError, KeyboardInterrupt):
            logger.debug("Interaction cancelled: %s", request.prompt)
            return InteractionResult(confirmed=False)

    def _ask_selection(self, request: InteractionRequest) -> InteractionResult:
        self._console.print(request.prompt)
        for index, choice in enumerate(request.choices, start=1):
            self._console.print(f"  [bold]{index}.[/bold] {choice}")
        raw = Prompt.ask("Enter number", console=self._console)

        try:
            index = int(raw.strip()) - 1
        except ValueError:
            return InteractionResult(confirmed=False)
        if 0 <= index < len(request.choices):
            return InteractionResult(selection=request.choices[index], confirmed=True)
        return InteractionResult(confirmed=False)

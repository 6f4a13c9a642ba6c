# define.py
# define_tool(): the single way to build a tool contract.
#
# Control flow of every invocation:
#   raw input → schema validation → handler(input, agent)
#   → response normalization → ToolResponse
#
# Validation and execution failures are returned as error responses, never
# raised. Only schema conversion, done once here at definition time, may
# raise (SchemaConversionError).

import inspect
import logging
import time
from typing import Any, Callable

from pydantic import ValidationError

from toolhost.agent import Agent, MockAgent
from toolhost.host import HostContext, get_host_context
from toolhost.models import ToolAnnotations, ToolContract, ToolResponse
from toolhost.responses import error_content, wrap_response
from toolhost.schema import InputSchema, format_issues

logger = logging.getLogger(__name__)

Handler = Callable[[Any, Agent], Any]


def _error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class Tool:
    """
    Handle returned by define_tool().

    Example:
        class AddToCart(BaseModel):
            product_id: str = Field(..., description="The product ID")
            quantity: int = Field(..., ge=1, description="Number of items")

        async def add_to_cart(args: AddToCart, agent: Agent) -> str:
            await cart.add(args.product_id, args.quantity)
            return f"Added {args.quantity}x {args.product_id} to cart"

        tool = define_tool(
            name="add-to-cart",
            description="Add a product to the shopping cart",
            input_schema=AddToCart,
            execute=add_to_cart,
        )
        tool.register()
    """

    def __init__(
        self,
        name: str,
        description: str,
        schema: InputSchema,
        handler: Handler,
        annotations: ToolAnnotations | None = None,
    ) -> None:
        self._schema = schema
        self._handler = handler
        self._contract = ToolContract(
            name=name,
            description=description,
            input_schema=schema.json_schema,
            execute=self._invoke,
            annotations=annotations,
        )

    # ------------------------------------------------------------------
    # Contract view
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._contract.name

    @property
    def description(self) -> str:
        return self._contract.description

    @property
    def schema(self) -> Any:
        """The schema description as given to define_tool()."""
        return self._schema.description

    @property
    def input_schema(self) -> dict[str, Any]:
        """The converted JSON Schema."""
        return self._contract.input_schema

    @property
    def annotations(self) -> ToolAnnotations | None:
        return self._contract.annotations

    @property
    def contract(self) -> ToolContract:
        return self._contract

    def to_contract(self) -> ToolContract:
        return self._contract

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def _invoke(self, raw_input: Any, agent: Agent) -> ToolResponse:
        try:
            validated = self._schema.validate(raw_input)
        except ValidationError as exc:
            logger.debug("Validation failed for %r: %s", self.name, exc)
            return error_content(f"Validation error: {format_issues(exc)}")

        started = time.perf_counter()
        try:
            result = self._handler(validated, agent)
            if inspect.isawaitable(result):
                result = await result
            response = wrap_response(result)
        except Exception as exc:
            logger.debug("Tool %r raised %s", self.name, type(exc).__name__, exc_info=True)
            return error_content(f"Execution error: {_error_message(exc)}")

        logger.debug(
            "Tool %r finished in %.1f ms", self.name, (time.perf_counter() - started) * 1000
        )
        return response

    async def execute(self, raw_input: Any, agent: Agent | None = None) -> ToolResponse:
        """Run the tool directly. Uses a MockAgent when no agent is given."""
        return await self._invoke(raw_input, agent or MockAgent())

    # ------------------------------------------------------------------
    # Host registration
    # ------------------------------------------------------------------

    def register(self, context: HostContext | None = None) -> None:
        (context or get_host_context()).adapter.register(self._contract)

    def unregister(self, context: HostContext | None = None) -> None:
        (context or get_host_context()).adapter.unregister(self.name)

    def __repr__(self) -> str:
        return f"Tool(name={self.name!r})"


def define_tool(
    name: str,
    description: str,
    input_schema: Any,
    execute: Handler,
    annotations: ToolAnnotations | dict[str, Any] | None = None,
) -> Tool:
    """
    Build a tool from a schema description and a handler.

    The schema is converted to JSON Schema here, once. A schema pydantic
    cannot handle raises SchemaConversionError immediately.
    """
    if isinstance(annotations, dict):
        annotations = ToolAnnotations.model_validate(annotations)
    return Tool(name, description, InputSchema(input_schema), execute, annotations)

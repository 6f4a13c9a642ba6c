# models.py
# Data contracts for tool definitions, responses, user interaction and the
# harness. No business logic lives here. Pure schema and validation.
#
# Wire names follow the host API (isError, mimeType); Python code uses the
# snake_case attributes. Dump with by_alias=True, exclude_none=True to get the
# wire shape.

from enum import Enum
from typing import Annotated, Any, Awaitable, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Content blocks
# ---------------------------------------------------------------------------


class TextContent(BaseModel):
    """Plain text returned by a tool."""

    type: Literal["text"] = "text"
    text: str


class ImageContent(BaseModel):
    """Base64 payload with its media type."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["image", "binary"] = "image"
    data: str = Field(..., description="Base64-encoded payload.")
    mime_type: str = Field(..., alias="mimeType")


class ResourceContent(BaseModel):
    """Reference to a resource by URI."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["resource"] = "resource"
    uri: str
    mime_type: str | None = Field(default=None, alias="mimeType")


ContentBlock = Annotated[
    Union[TextContent, ImageContent, ResourceContent],
    Field(discriminator="type"),
]


class ToolResponse(BaseModel):
    """
    Canonical result of a tool invocation. content is never empty. Keys other
    than content and isError (e.g. _meta) are kept and written back out.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    content: list[ContentBlock] = Field(..., min_length=1)
    is_error: bool | None = Field(default=None, alias="isError")

    def text(self) -> str:
        """Join the text blocks; non-text blocks are rendered as JSON."""
        parts: list[str] = []
        for block in self.content:
            if isinstance(block, TextContent):
                parts.append(block.text)
            else:
                parts.append(block.model_dump_json(by_alias=True, exclude_none=True))
        return "\n".join(parts)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Tool contract
# ---------------------------------------------------------------------------


class ToolAnnotations(BaseModel):
    """Open map of hints about a tool. Unknown keys are kept."""

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    read_only_hint: bool | None = Field(default=None, alias="readOnlyHint")
    destructive_hint: bool | None = Field(default=None, alias="destructiveHint")
    confirmation_hint: bool | None = Field(default=None, alias="confirmationHint")


ExecuteFn = Callable[[Any, Any], Awaitable[ToolResponse]]


class ToolContract(BaseModel):
    """
    Immutable definition a host stores and dispatches.

    input_schema is the converted JSON Schema; execute is the validating
    wrapper built by define_tool(), never the raw handler.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1, description="Unique key within a host.")
    description: str
    input_schema: dict[str, Any]
    execute: ExecuteFn
    annotations: ToolAnnotations | None = None


# ---------------------------------------------------------------------------
# User interaction
# ---------------------------------------------------------------------------


class InteractionRequest(BaseModel):
    """A handler's mid-execution request for a human decision."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = "Confirm action?"
    kind: Literal["confirmation", "input", "selection"] = Field(
        default="confirmation", alias="type"
    )
    choices: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _selection_needs_choices(self) -> "InteractionRequest":
        if self.kind == "selection" and not self.choices:
            raise ValueError("a selection request needs at least one choice")
        return self


class InteractionResult(BaseModel):
    """Answer to an InteractionRequest. Fields are meaningful per request kind."""

    confirmed: bool | None = None
    value: str | None = None
    selection: str | None = None


# ---------------------------------------------------------------------------
# Harness
# ---------------------------------------------------------------------------


class HostKind(str, Enum):
    NATIVE = "native"
    SUBSTITUTE = "substitute"


class HarnessStatus(str, Enum):
    IDLE = "idle"
    LISTING = "listing"
    DETAIL = "detail"
    EXECUTING = "executing"
    RESULT = "result"


class ControlKind(str, Enum):
    CHOICE = "choice"
    TOGGLE = "toggle"
    NUMBER = "number"
    STRUCTURED = "structured"
    TEXT = "text"


class FormField(BaseModel):
    """One input control derived from a schema property."""

    model_config = ConfigDict(frozen=True)

    name: str
    control: ControlKind
    schema_type: str | None = None
    required: bool = False
    description: str | None = None
    default: Any = None
    choices: list[Any] = Field(default_factory=list)


class RunResult(BaseModel):
    """Outcome of one harness submission."""

    response: ToolResponse
    elapsed_ms: int = Field(..., ge=0)


class HarnessSnapshot(BaseModel):
    """Everything a renderer needs to draw the harness. Read-only."""

    model_config = ConfigDict(frozen=True)

    status: HarnessStatus
    host_kind: HostKind
    tools: list[ToolContract]
    selected_tool: ToolContract | None = None
    form: list[FormField] = Field(default_factory=list)
    toggles: dict[str, bool] = Field(default_factory=dict)
    last_result: RunResult | None = None
    is_executing: bool = False
    is_minimized: bool = False

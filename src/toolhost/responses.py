# responses.py
# Response helpers and the normalizer applied to every handler return value.

import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from toolhost.models import TextContent, ToolResponse


def text_content(text: str) -> ToolResponse:
    return ToolResponse(content=[TextContent(text=text)])


def json_content(value: Any) -> ToolResponse:
    """Pretty-printed JSON in a single text block."""
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", by_alias=True)
    return text_content(json.dumps(value, indent=2, default=str))


def error_content(message: str) -> ToolResponse:
    return ToolResponse(content=[TextContent(text=message)], is_error=True)


def _is_content_shaped(value: Any) -> bool:
    if isinstance(value, ToolResponse):
        return True
    return isinstance(value, Mapping) and isinstance(value.get("content"), (list, tuple))


def wrap_response(result: Any) -> ToolResponse:
    """
    Coerce a handler's return value into a ToolResponse.

    - str                        -> one text block, no error flag
    - ToolResponse               -> returned as is
    - mapping with list content  -> validated into a ToolResponse; extra keys
                                    such as _meta are kept
    - anything else              -> json_content()

    A mapping whose content list is empty fails validation, which the caller
    reports as an execution error: a response always carries a block.
    """
    if isinstance(result, str):
        return text_content(result)

    if _is_content_shaped(result):
        if isinstance(result, ToolResponse):
            return result
        return ToolResponse.model_validate(dict(result))

    return json_content(result)

# schema.py
# Schema conversion and input validation, delegated to pydantic.
#
# A schema description is anything pydantic.TypeAdapter accepts, usually a
# BaseModel subclass. Conversion to JSON Schema happens once, in the
# constructor; validation runs per call.

from typing import Any

from pydantic import PydanticUserError, TypeAdapter, ValidationError

from toolhost.errors import SchemaConversionError


class InputSchema:
    """Pairs a schema description with its converted JSON Schema."""

    def __init__(self, description: Any) -> None:
        try:
            self._adapter: TypeAdapter[Any] = TypeAdapter(description)
            self._json_schema: dict[str, Any] = self._adapter.json_schema()
        except (PydanticUserError, TypeError, ValueError) as exc:
            raise SchemaConversionError(
                f"Cannot convert input schema {description!r}: {exc}"
            ) from exc
        self._description = description

    @property
    def description(self) -> Any:
        return self._description

    @property
    def json_schema(self) -> dict[str, Any]:
        return self._json_schema

    def validate(self, raw: Any) -> Any:
        """Return the validated value. Raises pydantic.ValidationError."""
        return self._adapter.validate_python(raw)


def format_issues(exc: ValidationError) -> str:
    """Render every issue as '<path>: <message>', joined with ', '."""
    issues = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error.get("loc", ()))
        issues.append(f"{path or '(input)'}: {error.get('msg', 'invalid value')}")
    return ", ".join(issues) or str(exc)


# ---------------------------------------------------------------------------
# Structural introspection
# ---------------------------------------------------------------------------


def _follow_ref(node: dict[str, Any], root: dict[str, Any]) -> dict[str, Any]:
    ref = node.get("$ref")
    if not isinstance(ref, str) or not ref.startswith("#/"):
        return node
    target: Any = root
    for part in ref[2:].split("/"):
        if not isinstance(target, dict) or part not in target:
            return node
        target = target[part]
    if not isinstance(target, dict):
        return node
    # Sibling keys (description, default) win over the referenced definition.
    merged = dict(target)
    merged.update({k: v for k, v in node.items() if k != "$ref"})
    return merged


def resolve_property(node: dict[str, Any], root: dict[str, Any]) -> dict[str, Any]:
    """
    Flatten the indirections pydantic emits so a property can be read
    directly: $ref into $defs, single-item allOf wrappers, and Optional[X]
    rendered as anyOf [X, null].
    """
    node = _follow_ref(node, root)
    wrapped = node.get("allOf")
    if isinstance(wrapped, list) and len(wrapped) == 1 and isinstance(wrapped[0], dict):
        inner = resolve_property(wrapped[0], root)
        merged = dict(inner)
        merged.update({k: v for k, v in node.items() if k != "allOf"})
        return merged
    variants = node.get("anyOf")
    if isinstance(variants, list):
        non_null = [v for v in variants if isinstance(v, dict) and v.get("type") != "null"]
        if len(non_null) == 1:
            inner = resolve_property(non_null[0], root)
            merged = dict(inner)
            merged.update({k: v for k, v in node.items() if k != "anyOf"})
            return merged
    return node

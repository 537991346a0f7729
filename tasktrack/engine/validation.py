"""
TaskTrack Validation — declarative constraint sets on top of pydantic.

Each entity declares a pydantic model (the typed struct) plus a table of
per-field messages. ``validate_payload`` runs the model once and reshapes
every violation into a ``{field: message}`` mapping carried by
TaskTrackValidationError, so clients can show all errors at once.

Field validators raise ``constraint(code, message)``; those messages are
passed through verbatim. Built-in pydantic failures (missing field, wrong
type, literal mismatch) are replaced by the field's declared message.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticCustomError

from tasktrack.engine.errors import TaskTrackValidationError

CONSTRAINT_PREFIX = "tasktrack_"
BODY_FIELD = "body"

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class FieldMessages:
    """Messages for a field's built-in failures."""
    required: str
    invalid: str


def constraint(code: str, message: str) -> PydanticCustomError:
    """Build a constraint violation whose message reaches the client as-is."""
    return PydanticCustomError(f"{CONSTRAINT_PREFIX}{code}", message)


def collect_errors(
    exc: ValidationError,
    messages: Mapping[str, FieldMessages],
) -> Dict[str, str]:
    """Reshape a pydantic ValidationError into ``{field: message}``.

    The first violation reported for a field wins.
    """
    errors: Dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc") or ()
        field = str(loc[0]) if loc else BODY_FIELD
        if field in errors:
            continue
        field_messages = messages.get(field)
        if err["type"].startswith(CONSTRAINT_PREFIX) or field_messages is None:
            errors[field] = err["msg"]
        elif err["type"] == "missing":
            errors[field] = field_messages.required
        else:
            errors[field] = field_messages.invalid
    return errors


def validate_payload(
    model_cls: Type[ModelT],
    payload: Any,
    messages: Mapping[str, FieldMessages],
    context: Optional[Dict[str, Any]] = None,
) -> ModelT:
    """
    Validate *payload* against *model_cls*, collecting every violation.

    Raises:
        TaskTrackValidationError: with ``errors`` populated per field.
    """
    if not isinstance(payload, Mapping):
        raise TaskTrackValidationError(
            errors={BODY_FIELD: "Request body must be a JSON object"},
        )
    try:
        return model_cls.model_validate(dict(payload), context=context)
    except ValidationError as exc:
        raise TaskTrackValidationError(
            "Validation failed",
            errors=collect_errors(exc, messages),
        )

"""Helpers that turn pydantic validation into field-tagged ValidationFailed errors."""
from __future__ import annotations

import re
from typing import Any, Dict, Mapping, Type, TypeVar

from pydantic import BaseModel, ValidationError

from greenlight.errors import ValidationFailed

M = TypeVar("M", bound=BaseModel)

EMAIL_RX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

_VALUE_ERROR_PREFIX = "Value error, "


def _message(error: Mapping[str, Any]) -> str:
    if error.get("type") == "missing":
        return "must be provided"
    msg = str(error.get("msg", "is invalid"))
    if msg.startswith(_VALUE_ERROR_PREFIX):
        msg = msg[len(_VALUE_ERROR_PREFIX):]
    return msg


def collect_errors(exc: ValidationError) -> Dict[str, str]:
    """Map a pydantic ValidationError onto {field: message}.

    Only the first message for a field is kept; nested locations (e.g. one bad
    genre) are reported against the top-level field.
    """
    errors: Dict[str, str] = {}
    for error in exc.errors():
        loc = error.get("loc") or ()
        field = str(loc[0]) if loc else "__all__"
        errors.setdefault(field, _message(error))
    return errors


def validate_input(model: Type[M], data: Mapping[str, Any]) -> M:
    """Validate ``data`` against ``model`` or raise ValidationFailed with every bad field."""
    try:
        return model.model_validate(dict(data))
    except ValidationError as exc:
        raise ValidationFailed(collect_errors(exc)) from exc


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RX.match(email or ""))

"""Movie runtime codec: integer minutes on the inside, ``"<N> mins"`` on the wire."""

import re
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer, StrictInt

from greenlight.errors import InvalidRuntimeFormat

RUNTIME_UNIT = "mins"
_COUNT_RE = re.compile(r"-?[0-9]+")


def format_runtime(minutes: int) -> str:
    return f"{minutes} {RUNTIME_UNIT}"


def parse_runtime(value: Any) -> int:
    """Parse the literal two-token form ``"<N> mins"``.

    Any other shape (a non-string, wrong token count, wrong unit, non-numeric
    count) raises InvalidRuntimeFormat.
    """
    if not isinstance(value, str):
        raise InvalidRuntimeFormat(value)
    parts = value.split(" ")
    if len(parts) != 2 or parts[1] != RUNTIME_UNIT:
        raise InvalidRuntimeFormat(value)
    if not _COUNT_RE.fullmatch(parts[0]):
        raise InvalidRuntimeFormat(value)
    return int(parts[0])


_as_text = PlainSerializer(format_runtime, return_type=str, when_used="json")

# Caller input: only the text form is accepted
Runtime = Annotated[int, BeforeValidator(parse_runtime), _as_text]

# Store projections: the column value, serialized to text like Runtime
StoredRuntime = Annotated[StrictInt, _as_text]

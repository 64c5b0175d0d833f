"""
Token scope constants.

A scope namespaces a token: a token minted for one purpose never satisfies a
lookup made for another.
"""

from typing import FrozenSet

SCOPE_ACTIVATION = "activation"
SCOPE_AUTHENTICATION = "authentication"

ALL_SCOPES: FrozenSet[str] = frozenset({SCOPE_ACTIVATION, SCOPE_AUTHENTICATION})


def is_valid_scope(scope: str) -> bool:
    """Return True if the provided scope is one of the supported values."""
    return scope in ALL_SCOPES

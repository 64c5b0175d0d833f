"""
Permission codes and the per-user permission set.

Membership is exact string equality; there is no hierarchy and no wildcard
matching between codes.
"""

from typing import FrozenSet, Iterable, Iterator, Tuple

PERMISSION_MOVIES_READ = "movies:read"
PERMISSION_MOVIES_WRITE = "movies:write"

ALL_PERMISSIONS: FrozenSet[str] = frozenset({PERMISSION_MOVIES_READ, PERMISSION_MOVIES_WRITE})

# Granted to every newly registered account
DEFAULT_PERMISSIONS: Tuple[str, ...] = (PERMISSION_MOVIES_READ,)


class PermissionSet:
    """Ordered, immutable collection of the capability codes granted to one user."""

    __slots__ = ("_codes",)

    def __init__(self, codes: Iterable[str] = ()):
        ordered = []
        for code in codes:
            if code not in ordered:
                ordered.append(code)
        self._codes: Tuple[str, ...] = tuple(ordered)

    def includes(self, code: str) -> bool:
        return code in self._codes

    def __contains__(self, code: object) -> bool:
        return code in self._codes

    def __iter__(self) -> Iterator[str]:
        return iter(self._codes)

    def __len__(self) -> int:
        return len(self._codes)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PermissionSet):
            return self._codes == other._codes
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._codes)

    def __repr__(self) -> str:
        return f"PermissionSet({list(self._codes)!r})"

    @property
    def codes(self) -> Tuple[str, ...]:
        return self._codes

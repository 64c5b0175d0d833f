"""
Sort/paging resolution for list queries.

Untrusted sort and paging parameters are turned into a ``Filters`` value in
two stages:

1. ``resolve_filters`` validates page, page size and sort against a closed
   safelist, collecting every problem into a single ValidationFailed. It is
   the only way callers obtain a ``Filters`` instance.
2. ``Filters`` then exposes the ORDER BY column/direction and LIMIT/OFFSET.
   The column always comes from the matched safelist entry, never from the
   raw user value.
"""
from __future__ import annotations

import math
from typing import Sequence, Tuple

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from greenlight.errors import ContractViolation
from greenlight.utils.validation import validate_input

MAX_PAGE = 10_000_000
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


class Filters(BaseModel):
    model_config = ConfigDict(frozen=True)

    sort_safelist: Tuple[str, ...]
    sort: str
    page: int
    page_size: int

    @field_validator("page")
    @classmethod
    def _validate_page(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be greater than or equal to 1")
        if v > MAX_PAGE:
            raise ValueError("must be less than or equal to 10 million")
        return v

    @field_validator("page_size")
    @classmethod
    def _validate_page_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be greater than or equal to 1")
        if v > MAX_PAGE_SIZE:
            raise ValueError("must be less than or equal to 100")
        return v

    @field_validator("sort")
    @classmethod
    def _validate_sort(cls, v: str, info: ValidationInfo) -> str:
        if v not in info.data.get("sort_safelist", ()):
            raise ValueError("invalid sort value")
        return v

    def sort_column(self) -> str:
        for safe_value in self.sort_safelist:
            if safe_value == self.sort:
                return safe_value[1:] if safe_value.startswith("-") else safe_value
        raise ContractViolation(f"unsafe sort value: {self.sort!r}")

    def sort_direction(self) -> str:
        return "DESC" if self.sort.startswith("-") else "ASC"

    def limit(self) -> int:
        return self.page_size

    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class Metadata(BaseModel):
    """Pagination summary; every field is zero when there are no records."""

    model_config = ConfigDict(frozen=True)

    current_page: int = 0
    page_size: int = 0
    first_page: int = 0
    last_page: int = 0
    total_records: int = 0

    def to_dict(self) -> dict:
        # zero fields are treated as absent on the wire
        return {k: v for k, v in self.model_dump().items() if v}


def resolve_filters(
    sort: str,
    sort_safelist: Sequence[str],
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> Filters:
    """Validate untrusted sort/paging input; raises ValidationFailed."""
    return validate_input(
        Filters,
        {
            "sort_safelist": tuple(sort_safelist),
            "sort": sort,
            "page": page,
            "page_size": page_size,
        },
    )


def calculate_metadata(total_records: int, page: int, page_size: int) -> Metadata:
    if total_records == 0:
        return Metadata()
    return Metadata(
        current_page=page,
        page_size=page_size,
        first_page=1,
        last_page=math.ceil(total_records / page_size),
        total_records=total_records,
    )

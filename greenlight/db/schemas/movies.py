from datetime import datetime, UTC
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from greenlight.utils.runtime import Runtime, StoredRuntime

MIN_YEAR = 1888
MAX_TITLE_CHARS = 500
MAX_GENRES = 5


class MovieBase(BaseModel):
    title: str
    year: int
    runtime: Runtime
    genres: List[str]

    @field_validator("title")
    @classmethod
    def _validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must be provided")
        if len(v) > MAX_TITLE_CHARS:
            raise ValueError("must not be more than 500 characters long")
        return v

    @field_validator("year")
    @classmethod
    def _validate_year(cls, v: int) -> int:
        if v == 0:
            raise ValueError("must be provided")
        if v < MIN_YEAR:
            raise ValueError("must be greater than or equal to 1888")
        if v > datetime.now(UTC).year:
            raise ValueError("must not be in the future")
        return v

    @field_validator("runtime")
    @classmethod
    def _validate_runtime(cls, v: int) -> int:
        if v == 0:
            raise ValueError("must be provided")
        if v < 0:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("genres")
    @classmethod
    def _validate_genres(cls, v: List[str]) -> List[str]:
        if len(v) < 1:
            raise ValueError("must contain at least 1 genre")
        if len(v) > MAX_GENRES:
            raise ValueError("must not contain more than 5 genres")
        if len(set(v)) != len(v):
            raise ValueError("must not contain duplicate values")
        return v


class MovieCreate(MovieBase):
    pass


class MovieUpdate(BaseModel):
    """Partial update: only the fields a caller supplies are applied."""

    title: Optional[str] = None
    year: Optional[int] = None
    runtime: Optional[Runtime] = None
    genres: Optional[List[str]] = None


class Movie(MovieBase):
    runtime: StoredRuntime
    id: int
    version: int
    created_at: datetime = Field(exclude=True)
    model_config = ConfigDict(from_attributes=True)

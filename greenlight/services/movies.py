"""
Movie service: validated create/show/update/delete/list over the movie repository.
"""

import logging
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from greenlight.db import schemas
from greenlight.db.filters import DEFAULT_PAGE_SIZE, Metadata, resolve_filters
from greenlight.db.repositories import movies as movie_repo
from greenlight.errors import EditConflict
from greenlight.utils.validation import validate_input

logger = logging.getLogger(__name__)

MOVIE_SORT_SAFELIST: Tuple[str, ...] = (
    "id", "title", "year", "runtime",
    "-id", "-title", "-year", "-runtime",
)


class MovieService:
    def __init__(self, db: Session):
        self.db = db

    def create_movie(self, data: Mapping[str, Any]) -> schemas.Movie:
        movie = validate_input(schemas.MovieCreate, data)
        return movie_repo.insert_movie(self.db, movie)

    def show_movie(self, movie_id: int) -> schemas.Movie:
        return movie_repo.get_movie(self.db, movie_id)

    def update_movie(
        self,
        movie_id: int,
        data: Mapping[str, Any],
        expected_version: Optional[int] = None,
    ) -> schemas.Movie:
        """Apply a partial update.

        ``expected_version`` lets a caller assert the version it last saw
        before the read; the write itself is always conditional on the
        version read here.
        """
        movie = movie_repo.get_movie(self.db, movie_id)
        if expected_version is not None and expected_version != movie.version:
            raise EditConflict("movies", movie_id, expected_version)

        changes = validate_input(schemas.MovieUpdate, data).model_dump(exclude_unset=True)
        merged = validate_input(schemas.Movie, {**movie.model_dump(), "created_at": movie.created_at, **changes})
        try:
            return movie_repo.update_movie(self.db, merged)
        except EditConflict:
            logger.warning("edit conflict updating movie %s at version %s", movie_id, movie.version)
            raise

    def delete_movie(self, movie_id: int) -> None:
        movie_repo.delete_movie(self.db, movie_id)

    def list_movies(
        self,
        title: str = "",
        genres: Sequence[str] = (),
        sort: str = "id",
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Tuple[List[schemas.Movie], Metadata]:
        filters = resolve_filters(sort, MOVIE_SORT_SAFELIST, page, page_size)
        return movie_repo.list_movies(self.db, title, list(genres), filters)

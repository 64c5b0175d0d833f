"""
Movie repository functions.

Implements movie CRUD with optimistic concurrency on update, and the
filtered/paginated list query that returns rows and the total count from a
single statement.
"""
from __future__ import annotations

import json
import re
from typing import List, Sequence, Tuple

from sqlalchemy import Text, cast, delete, false, func, update
from sqlalchemy.orm import Session

from greenlight.db import models, schemas
from greenlight.db.filters import Filters, Metadata, calculate_metadata
from greenlight.db.store_utils import deadline, dialect_name
from greenlight.errors import ContractViolation, EditConflict, RecordNotFound

_WORD_RE = re.compile(r"\w+", re.UNICODE)


def _to_schema(row: models.Movie) -> schemas.Movie:
    return schemas.Movie(
        id=row.id,
        created_at=row.created_at,
        title=row.title,
        year=row.year,
        runtime=row.runtime,
        genres=list(row.genres or []),
        version=row.version,
    )


def insert_movie(db: Session, movie: schemas.MovieCreate) -> schemas.Movie:
    with deadline(db, "insert movie"):
        db_movie = models.Movie(
            title=movie.title,
            year=movie.year,
            runtime=movie.runtime,
            genres=list(movie.genres),
            version=1,
        )
        db.add(db_movie)
        db.flush()
        db.refresh(db_movie)
        created = _to_schema(db_movie)
        db.commit()
    return created


def get_movie(db: Session, movie_id: int) -> schemas.Movie:
    if movie_id < 1:
        raise RecordNotFound("movies", movie_id)
    with deadline(db, "get movie", release=True):
        row = db.query(models.Movie).filter(models.Movie.id == movie_id).first()
        movie = _to_schema(row) if row is not None else None
    if movie is None:
        raise RecordNotFound("movies", movie_id)
    return movie


def update_movie(db: Session, movie: schemas.Movie) -> schemas.Movie:
    """Write ``movie`` only if the stored version still equals ``movie.version``.

    Zero rows affected means the row changed concurrently or no longer
    exists; both are reported as EditConflict.
    """
    stmt = (
        update(models.Movie)
        .where(models.Movie.id == movie.id, models.Movie.version == movie.version)
        .values(
            title=movie.title,
            year=movie.year,
            runtime=movie.runtime,
            genres=list(movie.genres),
            version=models.Movie.version + 1,
        )
        .returning(models.Movie.version)
        .execution_options(synchronize_session=False)
    )
    with deadline(db, "update movie"):
        new_version = db.execute(stmt).scalar_one_or_none()
        if new_version is None:
            db.rollback()
            raise EditConflict("movies", movie.id, movie.version)
        db.commit()
    return movie.model_copy(update={"version": new_version})


def delete_movie(db: Session, movie_id: int) -> None:
    if movie_id < 1:
        raise RecordNotFound("movies", movie_id)
    with deadline(db, "delete movie"):
        result = db.execute(
            delete(models.Movie)
            .where(models.Movie.id == movie_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            raise RecordNotFound("movies", movie_id)
        db.commit()


def _title_matches(db: Session, title: str):
    if dialect_name(db) == "postgresql":
        return [
            func.to_tsvector("simple", models.Movie.title).bool_op("@@")(
                func.plainto_tsquery("simple", title)
            )
        ]
    # Non-PostgreSQL fallback: every word of the query must occur as a whole
    # word of the title; a query without words matches nothing
    words = _WORD_RE.findall(title.lower())
    if not words:
        return [false()]
    return [
        models.Movie.title.regexp_match(rf"(?i)\b{re.escape(word)}\b")
        for word in words
    ]


def _has_genres(db: Session, genres: Sequence[str]):
    if dialect_name(db) == "postgresql":
        return [models.Movie.genres.contains(list(genres))]
    # JSON-stored genres: match each quoted element in the serialized list
    as_text = cast(models.Movie.genres, Text)
    return [as_text.contains(json.dumps(genre), autoescape=True) for genre in genres]


def list_movies(
    db: Session,
    title: str,
    genres: Sequence[str],
    filters: Filters,
) -> Tuple[List[schemas.Movie], Metadata]:
    """Return one page of movies plus pagination metadata.

    Results are ordered by the safelisted column, then by id so that pages
    stay stable when the sort column has duplicates.
    """
    if not isinstance(filters, Filters):
        raise ContractViolation("list_movies requires validated Filters")

    column = models.Movie.__table__.c[filters.sort_column()]
    order = column.desc() if filters.sort_direction() == "DESC" else column.asc()
    total_records = func.count().over().label("total_records")

    q = db.query(total_records, models.Movie)
    if title:
        q = q.filter(*_title_matches(db, title))
    if genres:
        q = q.filter(*_has_genres(db, genres))
    q = q.order_by(order, models.Movie.id.asc()).limit(filters.limit()).offset(filters.offset())

    with deadline(db, "list movies", release=True):
        rows = q.all()
        total = rows[0].total_records if rows else 0
        movies = [_to_schema(row.Movie) for row in rows]
    return movies, calculate_metadata(total, filters.page, filters.page_size)

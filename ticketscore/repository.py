"""SQL repositories that aggregate weighted ratings.

Each repository works on a DB-API connection whose parameter style is
``qmark`` (for example :mod:`sqlite3`). Ratings are scaled from 0-5 to 0-1,
weighted by their category weight and reported as a percentage.
"""

from __future__ import annotations

from contextlib import closing
from datetime import date, datetime, timedelta
from typing import Any

from .domain import CategoryScore, TicketCategoryScore

_WEEKLY_THRESHOLD = timedelta(days=30)

_CATEGORY_QUERY = """
    SELECT
        rc.name AS category,
        {period} AS period,
        COUNT(r.id) AS count,
        SUM((r.rating * 1.0 / 5.0) * rc.weight) AS weighted_score,
        SUM(rc.weight) AS total_weight
    FROM ratings r
    JOIN rating_categories rc ON r.rating_category_id = rc.id
    WHERE r.created_at BETWEEN ? AND ?
    GROUP BY rc.name, {period}
    ORDER BY rc.name, period
"""

_WEEKLY_PERIOD = "STRFTIME('%Y-%V', r.created_at)"
_DAILY_PERIOD = "DATE(r.created_at)"

_OVERALL_QUERY = """
    SELECT
        SUM((r.rating * 1.0 / 5.0) * rc.weight) AS total_weighted_score,
        SUM(rc.weight) AS total_weight,
        COUNT(r.id) AS rating_count
    FROM ratings r
    JOIN rating_categories rc ON r.rating_category_id = rc.id
    WHERE r.created_at BETWEEN ? AND ?;
"""

_TICKET_QUERY = """
    SELECT
        r.ticket_id,
        rc.name AS category,
        SUM((r.rating * 1.0 / 5.0) * rc.weight) AS weighted_score,
        SUM(rc.weight) AS total_weight
    FROM ratings r
    JOIN rating_categories rc ON r.rating_category_id = rc.id
    WHERE r.created_at BETWEEN ? AND ?
    GROUP BY r.ticket_id, rc.name
    ORDER BY r.ticket_id, rc.name;
"""


class RepositoryError(Exception):
    """Raised when a score query cannot be run or its rows cannot be read."""


def _sql_time(value: date) -> str:
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    return value.isoformat()


def _percentage(weighted_sum: Any, total_weight: Any) -> float:
    weighted = float(weighted_sum or 0.0)
    weight = float(total_weight or 0.0)
    if weight > 0:
        return weighted / weight * 100
    return 0.0


def _fetch(db: Any, query: str, start: date, end: date, what: str) -> list[tuple]:
    try:
        with closing(db.cursor()) as cursor:
            cursor.execute(query, (_sql_time(start), _sql_time(end)))
            return list(cursor.fetchall())
    except Exception as exc:
        raise RepositoryError(f"{what}: {exc}") from exc


class CategoryRepository:
    """Per-category scores, grouped by day or, for long ranges, by ISO week."""

    def __init__(self, db: Any) -> None:
        self._db = db

    def get_category_scores(self, start: date, end: date) -> list[CategoryScore]:
        weekly = end - start > _WEEKLY_THRESHOLD
        period = _WEEKLY_PERIOD if weekly else _DAILY_PERIOD
        query = _CATEGORY_QUERY.format(period=period)
        rows = _fetch(self._db, query, start, end, "failed to query category scores")
        try:
            return [
                CategoryScore(
                    category_name=str(category),
                    date=str(period_value),
                    score=_percentage(weighted_sum, total_weight),
                    rating_count=int(count),
                )
                for category, period_value, count, weighted_sum, total_weight in rows
            ]
        except (TypeError, ValueError) as exc:
            raise RepositoryError(f"failed to scan category score: {exc}") from exc


class OverallRepository:
    """Weighted score over every rating in a period."""

    def __init__(self, db: Any) -> None:
        self._db = db

    def get_overall_score(self, start: date, end: date) -> tuple[float, int]:
        """Return ``(score, rating_count)`` for the period."""
        rows = _fetch(self._db, _OVERALL_QUERY, start, end, "query error")
        if not rows:
            return 0.0, 0
        try:
            weighted_sum, total_weight, count = rows[0]
            rating_count = int(count or 0)
            return _percentage(weighted_sum, total_weight), rating_count
        except (TypeError, ValueError) as exc:
            raise RepositoryError(f"query error: {exc}") from exc


class TicketRepository:
    """Per-ticket, per-category scores."""

    def __init__(self, db: Any) -> None:
        self._db = db

    def get_scores_by_ticket(self, start: date, end: date) -> list[TicketCategoryScore]:
        rows = _fetch(self._db, _TICKET_QUERY, start, end, "query failed")
        try:
            return [
                TicketCategoryScore(
                    ticket_id=int(ticket_id),
                    category_name=str(category),
                    score=_percentage(weighted_sum, total_weight),
                )
                for ticket_id, category, weighted_sum, total_weight in rows
            ]
        except (TypeError, ValueError) as exc:
            raise RepositoryError(f"failed to scan row: {exc}") from exc
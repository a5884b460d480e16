"""Scorers that turn repository aggregates into score results."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Protocol

from .domain import (
    CategoryScore,
    OverallScoreResult,
    PeriodComparisonResult,
    TicketCategoryScore,
)


class ScoringError(Exception):
    """Raised when a score for one of the compared periods cannot be computed."""


class CategoryScoreSource(Protocol):
    def get_category_scores(self, start: date, end: date) -> list[CategoryScore]: ...


class OverallScoreSource(Protocol):
    def get_overall_score(self, start: date, end: date) -> tuple[float, int]: ...


class TicketScoreSource(Protocol):
    def get_scores_by_ticket(self, start: date, end: date) -> list[TicketCategoryScore]: ...


class CategoryScorer:
    """Scores per rating category over time."""

    def __init__(self, repo: CategoryScoreSource) -> None:
        self._repo = repo

    def get_category_scores(self, start: date, end: date) -> list[CategoryScore]:
        return self._repo.get_category_scores(start, end)


class OverallScorer:
    """Overall weighted score of a period and comparisons between periods."""

    def __init__(self, repo: OverallScoreSource) -> None:
        self._repo = repo

    def get_overall_score(self, start: date, end: date) -> OverallScoreResult:
        score, count = self._repo.get_overall_score(start, end)
        return OverallScoreResult(score=score, rating_count=count)

    def get_period_comparison(
        self,
        current_start: date,
        current_end: date,
        previous_start: date,
        previous_end: date,
    ) -> PeriodComparisonResult:
        """Compare two periods; the change is relative to the previous score."""
        try:
            current = self.get_overall_score(current_start, current_end)
        except Exception as exc:
            raise ScoringError(f"failed to get current period score: {exc}") from exc
        try:
            previous = self.get_overall_score(previous_start, previous_end)
        except Exception as exc:
            raise ScoringError(f"failed to get previous period score: {exc}") from exc

        change = 0.0
        if previous.score != 0:
            change = (current.score - previous.score) / previous.score * 100

        return PeriodComparisonResult(
            percentage_change=change,
            current_score=current.score,
            previous_score=previous.score,
            current_count=current.rating_count,
            previous_count=previous.rating_count,
        )


class TicketScorer:
    """Scores per ticket and category."""

    def __init__(self, repo: TicketScoreSource) -> None:
        self._repo = repo

    def get_ticket_scores(self, start: date, end: date) -> list[TicketCategoryScore]:
        return self._repo.get_scores_by_ticket(start, end)


def _month_back(now: datetime) -> tuple[int, int]:
    """Year and month of ``now`` moved back one month, with day overflow normalised."""
    year, month = (now.year - 1, 12) if now.month == 1 else (now.year, now.month - 1)
    if now.day > calendar.monthrange(year, month)[1]:
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return year, month


def get_comparison_periods(
    period: str, now: datetime | None = None
) -> tuple[datetime, datetime, datetime, datetime]:
    """Return ``(current_start, current_end, previous_start, previous_end)``.

    ``period`` is ``"week"`` (the last seven days against the seven before) or
    ``"month"`` (this month so far against the whole previous month, with
    month boundaries in UTC).
    """
    if now is None:
        now = datetime.now(timezone.utc)

    if period == "week":
        week = timedelta(days=7)
        return now - week, now, now - 2 * week, now - week

    if period == "month":
        tz = timezone.utc if now.tzinfo is not None else None
        current_start = datetime(now.year, now.month, 1, tzinfo=tz)
        year, month = _month_back(now)
        previous_start = datetime(year, month, 1, tzinfo=tz)
        next_year, next_month = (year + 1, 1) if month == 12 else (year, month + 1)
        previous_end = datetime(next_year, next_month, 1, tzinfo=tz) - timedelta(
            microseconds=1
        )
        return current_start, now, previous_start, previous_end

    raise ValueError(f"invalid period: {period}")
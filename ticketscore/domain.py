"""Value objects produced by the scoring repositories and scorers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CategoryScore:
    """Score of one rating category over one day or one ISO week."""

    category_name: str
    date: str  # YYYY-MM-DD for daily periods, YYYY-WW for weekly ones
    score: float = 0.0
    rating_count: int = 0


@dataclass(frozen=True)
class OverallScoreResult:
    """Weighted score over all ratings in a period."""

    score: float = 0.0
    rating_count: int = 0


@dataclass(frozen=True)
class PeriodComparisonResult:
    """Comparison of the overall score of two periods."""

    percentage_change: float = 0.0
    current_score: float = 0.0
    previous_score: float = 0.0
    current_count: int = 0
    previous_count: int = 0


@dataclass(frozen=True)
class TicketCategoryScore:
    """Aggregated score of one category on one ticket."""

    ticket_id: int
    category_name: str
    score: float = 0.0
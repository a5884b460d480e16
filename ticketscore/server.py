"""Scoring service: request and response messages and their handlers."""

from __future__ import annotations

import re
import struct
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any

from .repository import CategoryRepository, OverallRepository, TicketRepository
from .scoring import CategoryScorer, OverallScorer, ScoringError, TicketScorer

_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


@dataclass(frozen=True)
class ScoreRequest:
    start_date: str = ""
    end_date: str = ""


@dataclass(frozen=True)
class PeriodComparisonRequest:
    current_period: ScoreRequest = field(default_factory=ScoreRequest)
    previous_period: ScoreRequest = field(default_factory=ScoreRequest)


@dataclass(frozen=True)
class CategoryScoreEntry:
    category_name: str = ""
    date: str = ""
    score: float = 0.0
    rating_count: int = 0


@dataclass(frozen=True)
class ScoreResponse:
    scores: list[CategoryScoreEntry] = field(default_factory=list)


@dataclass(frozen=True)
class TicketScore:
    ticket_id: int = 0
    category_scores: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class TicketScoreResponse:
    ticket_scores: list[TicketScore] = field(default_factory=list)


@dataclass(frozen=True)
class OverallScoreResponse:
    score: float = 0.0
    rating_count: int = 0


@dataclass(frozen=True)
class PeriodComparisonResponse:
    percentage_change: float = 0.0
    current_score: float = 0.0
    previous_score: float = 0.0
    current_count: int = 0
    previous_count: int = 0


def _float32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", value))[0]


def _int32(value: int) -> int:
    return (value + 2**31) % 2**32 - 2**31


def _parse_date(value: str, label: str) -> datetime:
    """Parse a ``YYYY-MM-DD`` string into midnight of that day."""
    try:
        if not _DATE_PATTERN.fullmatch(value):
            raise ValueError(f"{value!r} is not in YYYY-MM-DD form")
        return datetime.combine(date.fromisoformat(value), time())
    except ValueError as exc:
        raise ValueError(f"invalid {label}: {exc}") from exc


def _parse_range(request: ScoreRequest, prefix: str = "") -> tuple[datetime, datetime]:
    start = _parse_date(request.start_date, f"{prefix}start date")
    end = _parse_date(request.end_date, f"{prefix}end date")
    return start, end


class TicketScoreServer:
    """Handles scoring requests against a ratings database."""

    def __init__(self, db: Any) -> None:
        self._category_scorer = CategoryScorer(CategoryRepository(db))
        self._ticket_scorer = TicketScorer(TicketRepository(db))
        self._overall_scorer = OverallScorer(OverallRepository(db))

    def get_category_scores(self, request: ScoreRequest) -> ScoreResponse:
        start, end = _parse_range(request)
        scores = self._category_scorer.get_category_scores(start, end)
        return ScoreResponse(
            scores=[
                CategoryScoreEntry(
                    category_name=score.category_name,
                    date=score.date,
                    score=_float32(score.score),
                    rating_count=_int32(score.rating_count),
                )
                for score in scores
            ]
        )

    def get_ticket_scores(self, request: ScoreRequest) -> TicketScoreResponse:
        start, end = _parse_range(request)
        by_ticket: dict[int, dict[str, float]] = {}
        for score in self._ticket_scorer.get_ticket_scores(start, end):
            by_ticket.setdefault(score.ticket_id, {})[score.category_name] = _float32(
                score.score
            )
        return TicketScoreResponse(
            ticket_scores=[
                TicketScore(ticket_id=_int32(ticket_id), category_scores=categories)
                for ticket_id, categories in by_ticket.items()
            ]
        )

    def get_overall_score(self, request: ScoreRequest) -> OverallScoreResponse:
        start, end = _parse_range(request)
        try:
            result = self._overall_scorer.get_overall_score(start, end)
        except Exception as exc:
            raise ScoringError(f"failed to calculate overall score: {exc}") from exc
        return OverallScoreResponse(
            score=_float32(result.score),
            rating_count=_int32(result.rating_count),
        )

    def get_period_comparison(
        self, request: PeriodComparisonRequest
    ) -> PeriodComparisonResponse:
        current_start, current_end = _parse_range(request.current_period, "current period ")
        previous_start, previous_end = _parse_range(
            request.previous_period, "previous period "
        )
        try:
            result = self._overall_scorer.get_period_comparison(
                current_start, current_end, previous_start, previous_end
            )
        except Exception as exc:
            raise ScoringError(f"failed to compare periods: {exc}") from exc
        return PeriodComparisonResponse(
            percentage_change=_float32(result.percentage_change),
            current_score=_float32(result.current_score),
            previous_score=_float32(result.previous_score),
            current_count=_int32(result.current_count),
            previous_count=_int32(result.previous_count),
        )
import re
import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from ticketscore.domain import CategoryScore, TicketCategoryScore
from ticketscore.repository import (
    CategoryRepository,
    OverallRepository,
    RepositoryError,
    TicketRepository,
)


class _FakeCursor:
    def __init__(self, connection):
        self._connection = connection
        self.closed = False

    def execute(self, query, params):
        self._connection.queries.append((query, params))
        if self._connection.error is not None:
            raise self._connection.error

    def fetchall(self):
        return list(self._connection.rows)

    def close(self):
        self.closed = True


class _FakeConnection:
    def __init__(self, rows=(), error=None):
        self.rows = list(rows)
        self.error = error
        self.queries = []

    def cursor(self):
        return _FakeCursor(self)


def _normalized(query):
    return " ".join(query.split())


@pytest.fixture
def sqlite_db():
    db = sqlite3.connect(":memory:")
    db.executescript(
        """
        CREATE TABLE rating_categories (id INTEGER PRIMARY KEY, name TEXT, weight REAL);
        CREATE TABLE ratings (
            id INTEGER PRIMARY KEY,
            rating INTEGER,
            ticket_id INTEGER,
            rating_category_id INTEGER,
            created_at TEXT
        );
        INSERT INTO rating_categories (id, name, weight) VALUES (1, 'GDPR', 1.0), (2, 'Spelling', 0.5);
        """
    )
    yield db
    db.close()


def _add_rating(db, rating, ticket_id, category_id, created_at):
    db.execute(
        "INSERT INTO ratings (rating, ticket_id, rating_category_id, created_at) VALUES (?, ?, ?, ?)",
        (rating, ticket_id, category_id, created_at),
    )


# Category repository


def test_get_category_scores():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    end = datetime(2024, 1, 15, tzinfo=timezone.utc)
    db = _FakeConnection(rows=[("Support", "2024-01-02", 10, 45.0, 5.0)])

    scores = CategoryRepository(db).get_category_scores(start, end)

    assert len(scores) == 1
    assert scores[0].category_name == "Support"
    assert scores[0].date == "2024-01-02"
    assert scores[0].rating_count == 10
    assert scores[0].score == pytest.approx(900.0, abs=0.01)
    query, params = db.queries[0]
    assert re.search(r"SELECT .* FROM ratings", _normalized(query))
    assert "DATE(r.created_at)" in query
    assert params == (start.isoformat(sep=" "), end.isoformat(sep=" "))


def test_category_scores_use_weekly_periods_for_long_ranges():
    start = datetime(2024, 1, 1)
    db = _FakeConnection(rows=[])
    CategoryRepository(db).get_category_scores(start, start + timedelta(days=31))
    assert "STRFTIME('%Y-%V', r.created_at)" in db.queries[0][0]


def test_category_scores_use_daily_periods_at_exactly_thirty_days():
    start = datetime(2024, 1, 1)
    db = _FakeConnection(rows=[])
    CategoryRepository(db).get_category_scores(start, start + timedelta(days=30))
    assert "DATE(r.created_at)" in db.queries[0][0]


def test_category_score_is_zero_when_weight_is_zero():
    db = _FakeConnection(rows=[("Support", "2024-01-02", 3, 0.0, 0.0)])
    scores = CategoryRepository(db).get_category_scores(datetime(2024, 1, 1), datetime(2024, 1, 2))
    assert scores == [CategoryScore("Support", "2024-01-02", 0.0, 3)]


def test_category_query_error_is_wrapped():
    db = _FakeConnection(error=sqlite3.OperationalError("connection is closed"))
    with pytest.raises(RepositoryError, match="failed to query category scores"):
        CategoryRepository(db).get_category_scores(datetime(2024, 1, 1), datetime(2024, 1, 2))


def test_category_scores_on_sqlite(sqlite_db):
    _add_rating(sqlite_db, 5, 1, 1, "2024-01-02 10:00:00")
    _add_rating(sqlite_db, 5, 2, 1, "2024-01-02 11:00:00")
    _add_rating(sqlite_db, 0, 3, 2, "2024-01-03 09:00:00")
    _add_rating(sqlite_db, 5, 4, 2, "2024-02-20 09:00:00")

    scores = CategoryRepository(sqlite_db).get_category_scores(
        datetime(2024, 1, 1), datetime(2024, 1, 15)
    )

    assert scores == [
        CategoryScore("GDPR", "2024-01-02", 100.0, 2),
        CategoryScore("Spelling", "2024-01-03", 0.0, 1),
    ]


# Overall repository


def test_get_overall_score_success():
    start = datetime(2025, 1, 1, tzinfo=timezone.utc)
    end = datetime(2025, 1, 31, 23, 59, 59, tzinfo=timezone.utc)
    db = _FakeConnection(rows=[(75.0, 100.0, 15)])

    score, count = OverallRepository(db).get_overall_score(start, end)

    assert count == 15
    assert score == pytest.approx(75.0, abs=0.01)
    query, params = db.queries[0]
    assert "SELECT SUM((r.rating * 1.0 / 5.0) * rc.weight)" in _normalized(query)
    assert params == (start.isoformat(sep=" "), end.isoformat(sep=" "))


def test_get_overall_score_zero_weight():
    db = _FakeConnection(rows=[(0.0, 0.0, 10)])
    end = datetime.now()
    score, count = OverallRepository(db).get_overall_score(end - timedelta(days=30), end)
    assert count == 10
    assert score == 0.0


def test_get_overall_score_query_error():
    db = _FakeConnection(error=sqlite3.OperationalError("sql: connection is already closed"))
    end = datetime.now()
    with pytest.raises(RepositoryError, match="query error"):
        OverallRepository(db).get_overall_score(end - timedelta(days=30), end)


def test_get_overall_score_without_rows():
    db = _FakeConnection(rows=[])
    assert OverallRepository(db).get_overall_score(datetime(2024, 1, 1), datetime(2024, 1, 2)) == (0.0, 0)


def test_overall_score_on_sqlite(sqlite_db):
    _add_rating(sqlite_db, 5, 1, 1, "2024-05-02 10:00:00")
    _add_rating(sqlite_db, 5, 1, 2, "2024-05-03 10:00:00")
    _add_rating(sqlite_db, 0, 2, 1, "2024-07-01 10:00:00")

    repo = OverallRepository(sqlite_db)
    assert repo.get_overall_score(datetime(2024, 5, 1), datetime(2024, 5, 31)) == (100.0, 2)
    assert repo.get_overall_score(datetime(2023, 1, 1), datetime(2023, 1, 31)) == (0.0, 0)


# Ticket repository


def test_get_scores_by_ticket():
    start = datetime(2024, 5, 1, tzinfo=timezone.utc)
    end = datetime(2024, 5, 31, 23, 59, 59, tzinfo=timezone.utc)
    db = _FakeConnection(rows=[(1, "Grammer", 40.0, 50.0), (2, "GDPR", 25.0, 50.0)])

    result = TicketRepository(db).get_scores_by_ticket(start, end)

    assert len(result) == 2
    assert result[0].ticket_id == 1
    assert result[0].category_name == "Grammer"
    assert result[0].score == pytest.approx(80.0, abs=0.01)
    assert result[1].ticket_id == 2
    assert result[1].category_name == "GDPR"
    assert result[1].score == pytest.approx(50.0, abs=0.01)
    query, params = db.queries[0]
    assert re.search(r"SELECT (.+) FROM ratings r", _normalized(query))
    assert params == (start.isoformat(sep=" "), end.isoformat(sep=" "))


def test_ticket_query_error_is_wrapped():
    db = _FakeConnection(error=sqlite3.OperationalError("boom"))
    with pytest.raises(RepositoryError, match="query failed"):
        TicketRepository(db).get_scores_by_ticket(datetime(2024, 5, 1), datetime(2024, 5, 2))


def test_ticket_row_that_cannot_be_read_is_reported():
    db = _FakeConnection(rows=[("not-a-number", "GDPR", 1.0, 1.0)])
    with pytest.raises(RepositoryError, match="failed to scan row"):
        TicketRepository(db).get_scores_by_ticket(datetime(2024, 5, 1), datetime(2024, 5, 2))


def test_ticket_scores_on_sqlite_are_ordered_by_ticket_and_category(sqlite_db):
    _add_rating(sqlite_db, 0, 2, 1, "2024-05-01 12:00:00")
    _add_rating(sqlite_db, 5, 1, 2, "2024-05-01 12:00:00")
    _add_rating(sqlite_db, 5, 1, 1, "2024-05-01 13:00:00")

    result = TicketRepository(sqlite_db).get_scores_by_ticket(
        datetime(2024, 5, 1), datetime(2024, 5, 2)
    )

    assert result == [
        TicketCategoryScore(1, "GDPR", 100.0),
        TicketCategoryScore(1, "Spelling", 100.0),
        TicketCategoryScore(2, "GDPR", 0.0),
    ]
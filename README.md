# ticketscore

Computes weighted quality scores for support tickets from a ratings
database. Each rating (0–5) belongs to a rating category with a weight. A
score is the sum of `rating / 5 * weight` divided by the sum of the weights,
expressed as a percentage. If the total weight is zero, the score is 0.

## Install

    pip install .

## Database layout

The package works with any DB-API connection that uses the `qmark`
parameter style, such as `sqlite3`. The queries use SQLite functions
(`DATE`, `STRFTIME`). The database needs two tables:

- `rating_categories(id, name, weight)`
- `ratings(id, ticket_id, rating_category_id, rating, created_at)`

## Usage

```python
import sqlite3

from ticketscore.server import (
    PeriodComparisonRequest,
    ScoreRequest,
    TicketScoreServer,
)

db = sqlite3.connect("database.db")
server = TicketScoreServer(db)

request = ScoreRequest(start_date="2024-05-01", end_date="2024-05-31")

overall = server.get_overall_score(request)
print(overall.score, overall.rating_count)

for entry in server.get_category_scores(request).scores:
    print(entry.category_name, entry.date, entry.score, entry.rating_count)

for ticket in server.get_ticket_scores(request).ticket_scores:
    print(ticket.ticket_id, ticket.category_scores)

comparison = server.get_period_comparison(
    PeriodComparisonRequest(
        current_period=ScoreRequest("2024-05-01", "2024-05-31"),
        previous_period=ScoreRequest("2024-04-01", "2024-04-30"),
    )
)
print(f"{comparison.percentage_change:+.1f}%")
```

### Request and response details

- Request dates must be in `YYYY-MM-DD` form. Each date is read as midnight
  of that day. This means ratings created later on the end date are not
  counted. A malformed date raises `ValueError`.
- Category scores are grouped by day (`YYYY-MM-DD`). When the range is
  longer than 30 days, they are grouped by ISO week instead (SQLite
  `STRFTIME('%Y-%V', ...)`). The results are ordered by category name and
  then by period.
- Ticket scores come back as one `TicketScore` per ticket. Each one maps a
  category name to that category's score, and the tickets are in ticket
  id order.
- `percentage_change` is the change measured relative to the previous
  period's score. It is 0 when the previous score is 0.
- Scores in responses are rounded to 32-bit float precision. Counts are
  reduced to 32-bit integers.
- `get_overall_score` and `get_period_comparison` wrap database failures in
  `ticketscore.scoring.ScoringError`. `get_category_scores` and
  `get_ticket_scores` let `ticketscore.repository.RepositoryError` through
  unchanged.

### Lower layers

The repositories in `ticketscore.repository` run the queries. Each one
takes a connection and a start and end `date` or `datetime`:

- `CategoryRepository.get_category_scores`
- `OverallRepository.get_overall_score`, which returns `(score, rating_count)`
- `TicketRepository.get_scores_by_ticket`

They raise `RepositoryError` when a query or a row fails.

The scorers in `ticketscore.scoring` are built on any object that offers
the matching repository method:

- `CategoryScorer`
- `OverallScorer`, which adds `get_period_comparison`
- `TicketScorer`

They return the dataclasses in `ticketscore.domain`.

`get_comparison_periods(period, now=None)` returns
`(current_start, current_end, previous_start, previous_end)`:

- `"week"` compares the last seven days with the seven days before them.
- `"month"` compares the current month so far with the whole previous
  month. Month boundaries are at midnight UTC.
- Any other period raises `ValueError("invalid period: ...")`.

## What it does not do

The package handles requests in-process only. It has no network listener
and no command to start a service, and it does not create or fill the
database tables.

## Tests

    pip install ".[test]"
    pytest
from __future__ import annotations

from datetime import date

from .models import PacingResult


def clamp(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


def _ceil_div(a: int, b: int) -> int:
    return -(-a // b)


def compute_pacing(
    total: int,
    start_date: date,
    today: date,
    target_days: int,
    verses_read: int,
) -> PacingResult:
    target_days = max(1, target_days)

    # Today is day 1; a start date in the future still counts as day 1.
    days_elapsed = max(1, (today - start_date).days + 1)

    expected = max(0, _ceil_div(total * days_elapsed, target_days))
    remaining = max(0, total - verses_read)
    days_remaining = max(1, target_days - days_elapsed)
    pace = max(1, _ceil_div(remaining, days_remaining))
    catchup = max(0, expected - verses_read)

    return PacingResult(
        days_elapsed=days_elapsed,
        expected_count=expected,
        remaining=remaining,
        days_remaining=days_remaining,
        pace=pace,
        catchup=catchup,
        recommended_today=catchup if catchup > 0 else pace,
    )


def today_count(pacing: PacingResult, max_today: int, plan_length: int, first_unread: int) -> int:
    return clamp(pacing.recommended_today, 0, min(max_today, max(0, plan_length - first_unread)))

"""
Cost resolution and obligation-bearing predicates for calendar events.
Pure functions over anything shaped like CalendarEvent (ORM row or schema).

Recurring = more than one occurrence date. A recurring event is charged
cost_per_occurrence x number of dates; a one-off event is charged cost.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Set, Tuple

from slipboard.core.timeutil import as_utc, parse_calendar_date


def _positive(value) -> Optional[Decimal]:
    if value is None:
        return None
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    return amount if amount > 0 else None


def is_recurring(occurrence_dates: Optional[List[str]]) -> bool:
    return bool(occurrence_dates) and len(occurrence_dates) > 1


def effective_cost(event) -> Optional[Decimal]:
    """Amount owed for the whole occurrence set, or None when the event is free."""
    dates = getattr(event, "occurrence_dates", None)
    per_occurrence = _positive(getattr(event, "cost_per_occurrence", None))
    if is_recurring(dates) and per_occurrence is not None:
        return per_occurrence * len(dates)
    return _positive(getattr(event, "cost", None))


def is_payment_bearing(event) -> bool:
    return effective_cost(event) is not None


def bears_obligation(event) -> bool:
    """Events that produce slips: a form to sign, a payment to declare, or both."""
    return bool(getattr(event, "requires_obligation_form", False)) or is_payment_bearing(event)


def has_elapsed(event, now: datetime) -> bool:
    """True once the event end is past and no occurrence date is today or later."""
    end_at = as_utc(event.end_at)
    if end_at is not None and end_at >= as_utc(now):
        return False
    today = as_utc(now).date()
    for raw in getattr(event, "occurrence_dates", None) or []:
        day = parse_calendar_date(raw)
        if day is not None and day >= today:
            return False
    return True


def clean_occurrence_dates(raw_dates: Optional[Iterable[str]]) -> List[str]:
    """Keep valid YYYY-MM-DD strings, sorted and de-duplicated."""
    days: Set[date] = set()
    for raw in raw_dates or []:
        day = parse_calendar_date(raw)
        if day is not None:
            days.add(day)
    return [d.isoformat() for d in sorted(days)]


def normalize_cost_fields(
    occurrence_dates: Optional[List[str]],
    cost,
    cost_per_occurrence,
) -> Tuple[Optional[List[str]], Optional[Decimal], Optional[Decimal]]:
    """Apply the storage rule: recurring events keep only cost_per_occurrence,
    one-off events keep only cost; non-positive amounts are dropped.
    """
    dates = clean_occurrence_dates(occurrence_dates)
    if is_recurring(dates):
        return dates, None, _positive(cost_per_occurrence)
    return None, _positive(cost), None

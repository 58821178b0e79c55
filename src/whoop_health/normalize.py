"""Pick one authoritative record per tracker day.

A per-day query can return several records: a main sleep plus naps, a
re-scored duplicate, or an entry still waiting to be scored. Callers that
want "the" sleep or recovery for a day go through pick_representative.
"""

from datetime import date
from typing import Optional, Sequence, TypeVar

from .core import day_of
from .models import Cycle, Recovery, ScoredRecord

R = TypeVar("R", bound=ScoredRecord)


def pick_representative(records: Sequence[R]) -> Optional[R]:
    """Best record for a day.

    Priority:
        1. first scored record that is not secondary (not a nap)
        2. first scored record of any kind
        3. first record in server order, unscored state and all

    Returns None only for an empty sequence.
    """
    if not records:
        return None

    for record in records:
        if record.is_scored and not record.is_secondary:
            return record

    for record in records:
        if record.is_scored:
            return record

    return records[0]


def group_by_day(records: Sequence[R], cutoff_hour: int = 4) -> list[tuple[date, R]]:
    """One representative per tracker day, oldest day first.

    Records without a usable timestamp are dropped. Server order is kept
    within each day so the fallback rules above still apply.
    """
    by_day: dict[date, list[R]] = {}
    for record in records:
        moment = record.local_anchor()
        if moment is None:
            continue
        by_day.setdefault(day_of(moment, cutoff_hour), []).append(record)

    return [(day, pick_representative(by_day[day])) for day in sorted(by_day)]


def with_cycle_offsets(recovery: Sequence[Recovery], cycles: Sequence[Cycle]) -> list[Recovery]:
    """Recoveries carrying the timezone_offset of the cycle they score.

    WHOOP sends no offset on recovery records. Borrowing the cycle's keeps a
    recovery on the same tracker day as its cycle wherever the user was.
    Recoveries whose cycle is not in `cycles` are returned unchanged.
    """
    offsets = {c.id: c.timezone_offset for c in cycles if c.id is not None and c.timezone_offset}
    result = []
    for record in recovery:
        offset = offsets.get(record.cycle_id)
        if offset and not record.timezone_offset:
            record = record.model_copy(update={"timezone_offset": offset})
        result.append(record)
    return result

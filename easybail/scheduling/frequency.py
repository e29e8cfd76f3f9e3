"""Next-occurrence arithmetic for automation frequencies."""

from datetime import datetime, timedelta
from typing import List, Union

from dateutil.relativedelta import relativedelta

from easybail.constants.automation import Frequency
from easybail.errors import InvalidFrequency

# relativedelta clamps the day to the last valid day of the target month,
# so 2024-01-31 + 1 month is 2024-02-29 and 2024-02-29 + 1 year is 2025-02-28.
_STEPS = {
    Frequency.DAILY: timedelta(days=1),
    Frequency.WEEKLY: timedelta(days=7),
    Frequency.MONTHLY: relativedelta(months=1),
    Frequency.QUARTERLY: relativedelta(months=3),
    Frequency.YEARLY: relativedelta(years=1),
}


def _coerce(frequency: Union[Frequency, str]) -> Frequency:
    try:
        return Frequency(frequency)
    except ValueError:
        raise InvalidFrequency(frequency) from None


def compute_next(frequency: Union[Frequency, str], from_: datetime) -> datetime:
    """
    Return the next occurrence after ``from_`` for the given frequency.

    Time of day and tzinfo of ``from_`` are preserved. Raises InvalidFrequency
    for anything that is not a Frequency member or value.
    """
    return from_ + _STEPS[_coerce(frequency)]


def compute_upcoming(frequency: Union[Frequency, str], from_: datetime, count: int = 3) -> List[datetime]:
    """Compute the next ``count`` occurrences, starting with ``from_`` itself."""
    step = _STEPS[_coerce(frequency)]
    runs = [from_]
    # Offsets are applied to the anchor so month-end clamping does not accumulate
    for i in range(1, count):
        runs.append(from_ + step * i)
    return runs[:count]

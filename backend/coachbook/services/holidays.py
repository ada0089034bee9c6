# backend/coachbook/services/holidays.py
"""
South African public holidays and business-day arithmetic.

Ten fixed-date holidays plus Good Friday and Family Day (Easter-derived).
A holiday landing on a Sunday is additionally observed on the following
Monday; if that Monday is already a holiday (Christmas on a Sunday), the
observed day moves to the next day that is not.

Used by billing/reminder scheduling for deadline shifting.
"""

from datetime import date, timedelta
from functools import lru_cache

# Easter Sunday (month, day), Gregorian. Anonymous Gregorian algorithm
# is used outside this range.
EASTER_SUNDAYS: dict[int, tuple[int, int]] = {
    2024: (3, 31),
    2025: (4, 20),
    2026: (4, 5),
    2027: (3, 28),
    2028: (4, 16),
    2029: (4, 1),
    2030: (4, 21),
    2031: (4, 13),
    2032: (3, 28),
    2033: (4, 17),
    2034: (4, 9),
    2035: (3, 25),
}

FIXED_HOLIDAYS: tuple[tuple[int, int, str], ...] = (
    (1, 1, "New Year's Day"),
    (3, 21, "Human Rights Day"),
    (4, 27, "Freedom Day"),
    (5, 1, "Workers' Day"),
    (6, 16, "Youth Day"),
    (8, 9, "National Women's Day"),
    (9, 24, "Heritage Day"),
    (12, 16, "Day of Reconciliation"),
    (12, 25, "Christmas Day"),
    (12, 26, "Day of Goodwill"),
)

SUNDAY = 6


def compute_easter_sunday(year: int) -> date:
    """Anonymous Gregorian algorithm (Meeus/Jones/Butcher)."""
    a = year % 19
    b = year // 100
    c = year % 100
    d = b // 4
    e = b % 4
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i = c // 4
    k = c % 4
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month = (h + l - 7 * m + 114) // 31
    day = ((h + l - 7 * m + 114) % 31) + 1
    return date(year, month, day)


def get_easter_sunday(year: int) -> date:
    known = EASTER_SUNDAYS.get(year)
    if known:
        return date(year, known[0], known[1])
    return compute_easter_sunday(year)


class HolidayCalendar:
    """
    Holiday lookups with a per-instance year → holiday-set memo.

    Holidays of a given year never change, so the memo is never evicted.
    """

    def __init__(self):
        self._cache: dict[int, frozenset[date]] = {}

    def get_public_holidays(self, year: int) -> list[date]:
        """All public holidays for `year`, observed Mondays included, sorted."""
        easter = get_easter_sunday(year)

        base = [date(year, month, day) for month, day, _ in FIXED_HOLIDAYS]
        base.append(easter - timedelta(days=2))  # Good Friday
        base.append(easter + timedelta(days=1))  # Family Day

        # Good Friday can fall on Human Rights Day (21 March)
        holidays = set(base)
        for holiday in sorted(set(base)):
            if holiday.weekday() != SUNDAY:
                continue
            observed = holiday + timedelta(days=1)
            while observed in holidays:
                observed += timedelta(days=1)
            holidays.add(observed)

        return sorted(holidays)

    def _holiday_set(self, year: int) -> frozenset[date]:
        cached = self._cache.get(year)
        if cached is None:
            cached = frozenset(self.get_public_holidays(year))
            self._cache[year] = cached
        return cached

    def is_weekend(self, day: date) -> bool:
        return day.weekday() >= 5

    def is_public_holiday(self, day: date) -> bool:
        return day in self._holiday_set(day.year)

    def is_business_day(self, day: date) -> bool:
        return not self.is_weekend(day) and not self.is_public_holiday(day)

    def preceding_business_day(self, day: date) -> date:
        """`day` itself when it is a business day, else the closest earlier one."""
        while not self.is_business_day(day):
            day -= timedelta(days=1)
        return day

    def next_business_day(self, day: date) -> date:
        """`day` itself when it is a business day, else the closest later one."""
        while not self.is_business_day(day):
            day += timedelta(days=1)
        return day

    def add_business_days(self, day: date, days: int) -> date:
        if days < 0:
            raise ValueError("days must be >= 0")
        remaining = days
        while remaining > 0:
            day += timedelta(days=1)
            if self.is_business_day(day):
                remaining -= 1
        return day

    def subtract_business_days(self, day: date, days: int) -> date:
        if days < 0:
            raise ValueError("days must be >= 0")
        remaining = days
        while remaining > 0:
            day -= timedelta(days=1)
            if self.is_business_day(day):
                remaining -= 1
        return day


@lru_cache
def get_holiday_calendar() -> HolidayCalendar:
    return HolidayCalendar()


def get_public_holidays(year: int) -> list[date]:
    return get_holiday_calendar().get_public_holidays(year)


def is_weekend(day: date) -> bool:
    return get_holiday_calendar().is_weekend(day)


def is_public_holiday(day: date) -> bool:
    return get_holiday_calendar().is_public_holiday(day)


def is_business_day(day: date) -> bool:
    return get_holiday_calendar().is_business_day(day)


def preceding_business_day(day: date) -> date:
    return get_holiday_calendar().preceding_business_day(day)


def next_business_day(day: date) -> date:
    return get_holiday_calendar().next_business_day(day)


def add_business_days(day: date, days: int) -> date:
    return get_holiday_calendar().add_business_days(day, days)


def subtract_business_days(day: date, days: int) -> date:
    return get_holiday_calendar().subtract_business_days(day, days)

"""
Display formatting for IDR amounts and Indonesian date labels.

Amounts are whole rupiah: no decimals, "." as the thousands separator.
"""

from datetime import date, datetime, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

Number = Union[Decimal, float, int]

MONTHS_SHORT = [
    "Jan", "Feb", "Mar", "Apr", "Mei", "Jun",
    "Jul", "Agu", "Sep", "Okt", "Nov", "Des",
]
MONTHS_LONG = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]
# date.weekday(): Monday == 0
WEEKDAYS = ["Senin", "Selasa", "Rabu", "Kamis", "Jumat", "Sabtu", "Minggu"]


def format_currency(amount: Number) -> str:
    """
    Format an amount as rupiah.

    >>> format_currency(50000)
    'Rp 50.000'
    >>> format_currency(Decimal("-1250000.6"))
    '-Rp 1.250.001'
    """
    value = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    digits = f"{abs(value):,.0f}".replace(",", ".")
    return f"{sign}Rp {digits}"


def compact_amount(amount: Number) -> str:
    """Short axis label: 1.5jt for millions, 50rb for thousands."""
    value = float(amount)
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}jt"
    if value >= 1_000:
        return f"{value / 1_000:.0f}rb"
    if value == int(value):
        return str(int(value))
    return str(value)


def to_local(moment: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """
    Convert an aware timestamp to the display timezone.

    Naive timestamps are taken as already local.
    """
    if tz is None or moment.tzinfo is None:
        return moment
    return moment.astimezone(tz)


def short_date_label(day: date) -> str:
    """'5 Okt'"""
    return f"{day.day} {MONTHS_SHORT[day.month - 1]}"


def long_date_label(day: date) -> str:
    """'Senin, 19 Oktober 2026'"""
    return (
        f"{WEEKDAYS[day.weekday()]}, {day.day} "
        f"{MONTHS_LONG[day.month - 1]} {day.year}"
    )


def format_timestamp(moment: datetime, tz: Optional[tzinfo] = None) -> str:
    """List timestamp: '19 Okt 14.30'."""
    local = to_local(moment, tz)
    return f"{short_date_label(local.date())} {local:%H.%M}"

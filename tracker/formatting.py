from datetime import date
from typing import Optional, Union

Number = Union[int, float]


def format_currency(amount: Optional[Number]) -> str:
    """Rupiah, no decimals, dot as thousands separator: ``Rp 1.000.000``."""
    value = round(float(amount or 0))
    digits = f"{abs(value):,.0f}".replace(",", ".")
    sign = "-" if value < 0 else ""
    return f"{sign}Rp {digits}"


def format_signed_currency(amount: Optional[Number], tx_type: str) -> str:
    prefix = "+" if tx_type == "income" else "-"
    return prefix + format_currency(abs(float(amount or 0)))


def format_percent(value: Optional[Number], digits: int = 1) -> str:
    return f"{float(value or 0):.{digits}f}%"


def format_drift(value: Optional[Number]) -> str:
    v = float(value or 0)
    return f"{'+' if v >= 0 else ''}{v:.1f}%"


def format_compact(value: Optional[Number]) -> str:
    v = float(value or 0)
    if abs(v) >= 1_000_000:
        return f"{v / 1_000_000:.1f}M"
    if abs(v) >= 1_000:
        return f"{v / 1_000:.0f}k"
    return f"{v:.0f}"


def format_date(d: Optional[date]) -> str:
    return d.isoformat() if d else "-"


def parse_date(value: str) -> date:
    return date.fromisoformat(value.strip()[:10])


def default_date_range(today: date) -> tuple[date, date]:
    return today.replace(day=1), today

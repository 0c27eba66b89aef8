from decimal import Decimal, InvalidOperation


def _tail(address: str, n: int = 6) -> str:
    """Return the last n characters of a lowercased address (for concise logs)."""
    addr = (address or "").lower()
    return addr[-n:] if len(addr) >= n else addr


def parse_units(amount: str, decimals: int) -> int:
    """
    Convert a human amount ("0.00245") to integer base units.

    Raises ValueError for non-numeric, negative or over-precise amounts.
    """
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid token amount: {amount!r}") from None
    if not value.is_finite() or value < 0:
        raise ValueError(f"Invalid token amount: {amount!r}")
    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {amount!r} has more than {decimals} decimals")
    return int(scaled)


def format_units(amount: int, decimals: int) -> str:
    """Render base units as a human amount without trailing zeros."""
    value = Decimal(int(amount)).scaleb(-decimals)
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def format_countdown(seconds: int) -> str:
    """Format remaining seconds as 'Hh Mm Ss'."""
    remaining = max(0, int(seconds))
    hours, rest = divmod(remaining, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours}h {minutes}m {secs}s"

"""Amount parsing and formatting for Colombian peso amounts."""

from decimal import Decimal, InvalidOperation
import re

_CURRENCY = re.compile(r"(?i)\bcop\b|\$")


def _strip_grouping(number: str) -> str:
    """Turn a grouped number into a plain decimal string.

    With both separators present, the last one is the decimal mark. With only
    one kind present it is a thousands separator when every group after it has
    exactly three digits ("50.000", "1,250,000"); otherwise a decimal mark.
    """
    has_dot = "." in number
    has_comma = "," in number

    if has_dot and has_comma:
        decimal_mark = "." if number.rfind(".") > number.rfind(",") else ","
        thousands = "," if decimal_mark == "." else "."
        return number.replace(thousands, "").replace(decimal_mark, ".")

    separator = "." if has_dot else "," if has_comma else None
    if separator is None:
        return number

    head, *groups = number.split(separator)
    if head and all(len(group) == 3 and group.isdigit() for group in groups):
        return head + "".join(groups)
    if len(groups) == 1:
        return f"{head}.{groups[0]}"
    # Mixed group sizes with one separator kind; let Decimal reject it
    return number


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "50000"
    - "$ 50.000" (Colombian grouping)
    - "50,000" or "1,250,000"
    - "COP 20.000,50"
    - "-20000" or "(20000)" (negative)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip()

    is_negative = False
    if text.startswith("(") and text.endswith(")"):
        is_negative = True
        text = text[1:-1]

    text = _CURRENCY.sub("", text).replace(" ", "").strip()
    if text.startswith("-"):
        is_negative = not is_negative
        text = text[1:]

    if not text or not re.fullmatch(r"[0-9.,]+", text):
        raise ValueError(f"Could not parse amount '{amount_str}'")

    try:
        amount = Decimal(_strip_grouping(text))
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")

    return -amount if is_negative else amount


def format_amount(amount: Decimal) -> str:
    """Format an amount the way operators read pesos: ``$ 1.250.000``.

    Cents are shown only when present.
    """
    sign = "-" if amount < 0 else ""
    value = abs(amount)
    if value == value.to_integral_value():
        grouped = f"{int(value):,}".replace(",", ".")
    else:
        whole, cents = f"{value:,.2f}".split(".")
        grouped = f"{whole.replace(',', '.')},{cents}"
    return f"{sign}$ {grouped}"

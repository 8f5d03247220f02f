"""String processing utilities for the fleet analytics tools.

Every numeric field the aggregation core reads goes through ``safe_float()``
so that malformed or absent spreadsheet cells degrade to zero instead of
raising.  Keep it fast: it runs once per cell of every loaded sheet.
"""

from utils.patterns import ARABIC_DIGITS, CURRENCY_SYMBOLS, NON_NUMERIC, WHITESPACE


def safe_float(val, default: float = 0.0) -> float:
    """Safely convert value to float with fallback default.

    Handles:
    - None, empty strings -> default
    - Numeric types -> float (NaN and infinities -> default)
    - Strings with currency markers, whitespace, NBSP, thousands commas
    - Arabic-Indic digits ("١٢٣٫٥")
    - Invalid input -> default

    Args:
        val: Value to convert (any type)
        default: Value to return on failure (default: 0.0)

    Returns:
        float: Parsed value or default
    """
    if val is None or val == '':
        return default
    if isinstance(val, bool):
        return float(val)
    if isinstance(val, (int, float)):
        f = float(val)
        return f if f == f and f not in (float('inf'), float('-inf')) else default

    try:
        s = str(val).translate(ARABIC_DIGITS)
        s = CURRENCY_SYMBOLS.sub('', s)
        s = WHITESPACE.sub('', s).replace(',', '')
        if not s:
            return default
        f = float(s)
    except (ValueError, TypeError):
        return default
    if f != f or f in (float('inf'), float('-inf')):
        return default
    return f


def safe_int(val, default: int = 0) -> int:
    """Parse an integer field (years, counts) with the same leniency as safe_float."""
    f = safe_float(val, default=float('nan'))
    if f != f:
        return default
    return int(f)


def clean_amount(val) -> float:
    """Strip every non-numeric character and parse, as the salary sheet requires.

    Unlike ``safe_float`` this tolerates free text around the number
    ("300 دينار شهرياً" -> 300.0).  Negative amounts are not representable.
    """
    if val is None:
        return 0.0
    if isinstance(val, (int, float)) and not isinstance(val, bool):
        return safe_float(val)
    s = NON_NUMERIC.sub('', str(val).translate(ARABIC_DIGITS))
    return safe_float(s)


def normalize_whitespace(s: str) -> str:
    """Normalize multiple whitespace characters (incl. NBSP) to single spaces.

    Example:
        "  مؤته \\u00A0 الجديدة " -> "مؤته الجديدة"
    """
    return WHITESPACE.sub(' ', s).strip()


def clean_text(val) -> str:
    """Return a trimmed string for any cell value; None becomes ''."""
    if val is None:
        return ''
    return normalize_whitespace(str(val))

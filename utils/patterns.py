"""Pre-compiled regex patterns for the fleet analytics tools.

All patterns are compiled once at module import; the numeric helpers in
``utils.strings`` call them for every cell of every loaded sheet.

Usage:
    from utils.patterns import WHITESPACE, CURRENCY_SYMBOLS

    if CURRENCY_SYMBOLS.search(text):
        ...
"""

import re

# Whitespace normalization: multiple spaces/tabs/newlines (\s covers NBSP)
WHITESPACE = re.compile(r'\s+')

# Currency markers found in the salary/revenue sheets: symbols plus the
# Jordanian dinar abbreviations ("د.أ", "JD", "JOD")
CURRENCY_SYMBOLS = re.compile(r'[\$€£]|د\.?\s?أ|\bJOD\b|\bJD\b', re.IGNORECASE)

# Everything that is not part of an unsigned decimal number
NON_NUMERIC = re.compile(r'[^\d.]')

# Calendar date at the start of a weigh-in timestamp: 2024-03-01, 2024/3/1
ISO_DATE_PREFIX = re.compile(r'^(\d{4})[-/](\d{1,2})[-/](\d{1,2})')

# Day-first date used by some exports: 01/03/2024, 1-3-2024
DAY_FIRST_DATE_PREFIX = re.compile(r'^(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})')

# Arabic-Indic digits and separators mapped to their ASCII counterparts
ARABIC_DIGITS = str.maketrans("٠١٢٣٤٥٦٧٨٩٫٬", "0123456789.,")

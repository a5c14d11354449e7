"""
Module: grading.normalize

Purpose:
    Text, number and unit normalization used when comparing a response with
    an expected answer. Everything here is pure.

Key Functions:
    - normalize_text(): NFKC, whitespace collapse, optional case folding
    - strip_punctuation(): Punctuation-insensitive form for equivalent phrasing
    - parse_number() / split_quantity(): Exact numeric values (Fraction)
    - normalize_unit(): Unit spelling -> canonical symbol
    - is_known_unit(): Whether a spelling is a recognised unit
    - reverse_words(): Word order reversed, for reverse-argument answers

Used By:
    - grading.text
    - grading.tables
"""

from __future__ import annotations

import re
import unicodedata
from fractions import Fraction
from typing import Dict, Optional, Tuple

_WHITESPACE = re.compile(r"\s+")
_PUNCTUATION = re.compile(r"[^\w\s]")
_THOUSANDS = re.compile(r"(?<=\d),(?=\d{3}\b)")
_QUANTITY = re.compile(
    r"^\s*([+-]?(?:\d[\d,]*(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?(?:\s*/\s*\d+)?)\s*(.*?)\s*$"
)

# NFKC leaves these as look-alikes
_TRANSLATE = str.maketrans({
    "−": "-",  # minus sign
    "–": "-",
    "⁄": "/",  # fraction slash
    "·": ".",
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
})


def normalize_text(text: str, *, case_sensitive: bool = False) -> str:
    """
    Canonical comparison form of a response or answer.

    Subscripts, superscripts and vulgar fractions fold to plain characters
    through NFKC, so "H₂O" compares equal to "H2O".

    Example:
        >>> normalize_text("  Water  (H₂O) ")
        'water (h2o)'
    """
    text = unicodedata.normalize("NFKC", text).translate(_TRANSLATE)
    text = _WHITESPACE.sub(" ", text).strip()
    return text if case_sensitive else text.casefold()


def strip_punctuation(text: str) -> str:
    """Drop punctuation and collapse what is left."""
    return _WHITESPACE.sub(" ", _PUNCTUATION.sub(" ", text)).strip()


def reverse_words(text: str) -> str:
    return " ".join(reversed(text.split()))


# ─────────────────────────────────────────────────────────────────────────────
# Numbers
# ─────────────────────────────────────────────────────────────────────────────

def parse_number(text: str) -> Optional[Fraction]:
    """
    Exact value of a numeric literal, or None.

    Accepts decimals, exponents, simple fractions and thousands separators:
    "0.50", "5e-1" and "1/2" all parse to Fraction(1, 2).
    """
    cleaned = _THOUSANDS.sub("", normalize_text(text)).replace(" ", "")
    if not cleaned:
        return None
    try:
        return Fraction(cleaned)
    except (ValueError, ZeroDivisionError):
        return None


def split_quantity(text: str) -> Optional[Tuple[Fraction, str]]:
    """
    Split "9.8 m/s²" into (value, unit text). None when there is no leading number.

    Example:
        >>> split_quantity("0.50 kg")
        (Fraction(1, 2), 'kg')
    """
    match = _QUANTITY.match(normalize_text(text))
    if match is None:
        return None
    value = parse_number(match.group(1))
    if value is None:
        return None
    return value, match.group(2)


# ─────────────────────────────────────────────────────────────────────────────
# Units
# ─────────────────────────────────────────────────────────────────────────────

_UNIT_SPELLINGS = {
    "s": ("s", "sec", "secs", "second", "seconds"),
    "min": ("min", "mins", "minute", "minutes"),
    "h": ("h", "hr", "hrs", "hour", "hours"),
    "m": ("m", "metre", "metres", "meter", "meters"),
    "cm": ("cm", "centimetre", "centimetres", "centimeter", "centimeters"),
    "mm": ("mm", "millimetre", "millimetres", "millimeter", "millimeters"),
    "km": ("km", "kilometre", "kilometres", "kilometer", "kilometers"),
    "kg": ("kg", "kilogram", "kilograms", "kilogramme", "kilogrammes"),
    "g": ("g", "gram", "grams", "gramme", "grammes"),
    "n": ("n", "newton", "newtons"),
    "j": ("j", "joule", "joules"),
    "kj": ("kj", "kilojoule", "kilojoules"),
    "w": ("w", "watt", "watts"),
    "v": ("v", "volt", "volts"),
    "a": ("a", "amp", "amps", "ampere", "amperes"),
    "ohm": ("ω", "ohm", "ohms"),
    "hz": ("hz", "hertz"),
    "pa": ("pa", "pascal", "pascals"),
    "mol": ("mol", "mole", "moles"),
    "degc": ("°c", "degc", "degreesc", "degreec", "celsius", "degreescelsius", "oc"),
    "k": ("k", "kelvin", "kelvins"),
    "m/s": ("m/s", "ms-1", "ms^-1", "mpers", "metrespersecond", "meterspersecond"),
    "m/s2": ("m/s2", "m/s^2", "ms-2", "ms^-2", "metrespersecondsquared", "meterspersecondsquared"),
    "cm3": ("cm3", "cm^3", "cubiccentimetres", "cubiccentimeters"),
    "dm3": ("dm3", "dm^3", "litre", "litres", "liter", "liters", "l"),
    "%": ("%", "percent", "percentage", "pc"),
}

UNIT_ALIASES: Dict[str, str] = {
    spelling: canonical
    for canonical, spellings in _UNIT_SPELLINGS.items()
    for spelling in spellings
}


def normalize_unit(unit: str) -> str:
    """
    Canonical unit symbol; spacing, case and long names are ignored.

    Unknown units come back case-folded with spaces removed, so they still
    compare equal to themselves.

    Example:
        >>> normalize_unit("Metres") == normalize_unit(" m ")
        True
    """
    compact = normalize_text(unit).replace(" ", "").rstrip(".")
    return UNIT_ALIASES.get(compact, compact)


def is_known_unit(unit: str) -> bool:
    """True when the spelling is one of the recognised unit aliases."""
    return normalize_text(unit).replace(" ", "").rstrip(".") in UNIT_ALIASES

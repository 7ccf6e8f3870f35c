"""Profession slug normalization.

A slug is the card store key: Cyrillic is transliterated to Latin, case
and surrounding whitespace are ignored, runs of whitespace and hyphens
collapse into a single hyphen, and anything outside ``[a-z0-9-]`` is dropped.

    >>> slugify("Frontend-разработчик")
    'frontend-razrabotchik'
    >>> slugify("  Бариста  ")
    'barista'
"""

import re
import unicodedata

_TRANSLIT: dict[str, str] = {
    "а": "a",
    "б": "b",
    "в": "v",
    "г": "g",
    "д": "d",
    "е": "e",
    "ё": "yo",
    "ж": "zh",
    "з": "z",
    "и": "i",
    "й": "y",
    "к": "k",
    "л": "l",
    "м": "m",
    "н": "n",
    "о": "o",
    "п": "p",
    "р": "r",
    "с": "s",
    "т": "t",
    "у": "u",
    "ф": "f",
    "х": "h",
    "ц": "ts",
    "ч": "ch",
    "ш": "sh",
    "щ": "sch",
    "ъ": "",
    "ы": "y",
    "ь": "",
    "э": "e",
    "ю": "yu",
    "я": "ya",
}

_TRANSLIT_TABLE = str.maketrans(_TRANSLIT)
_SEPARATORS = re.compile(r"[\s\-_/]+")
_DISALLOWED = re.compile(r"[^a-z0-9-]")
_HYPHEN_RUNS = re.compile(r"-{2,}")


def transliterate(text: str) -> str:
    """Transliterate Russian Cyrillic to Latin, lowercasing the input.

    Args:
        text: Arbitrary text.

    Returns:
        Lowercase text with Cyrillic letters replaced.
    """
    # NFC keeps "ё" as one code point so it maps to "yo", not "e" + diaeresis
    return unicodedata.normalize("NFC", text).lower().translate(_TRANSLIT_TABLE)


def slugify(name: str) -> str:
    """Normalize a profession name into its card store slug.

    Deterministic and insensitive to case and whitespace: names that differ
    only in those respects share a slug.

    Args:
        name: Profession name in any script.

    Returns:
        Slug of ``[a-z0-9-]`` characters without leading or trailing
        hyphens. Empty if the name has no transliterable characters.
    """
    text = transliterate(name.strip())
    text = _SEPARATORS.sub("-", text)
    text = _DISALLOWED.sub("", text)
    text = _HYPHEN_RUNS.sub("-", text)
    return text.strip("-")

from __future__ import annotations

import re
import unicodedata

_whitespace_re = re.compile(r"\s+")
_non_alpha_re = re.compile(r"[^a-z\s]")
_non_alnum_re = re.compile(r"[^a-z0-9\s]")
_leading_the_re = re.compile(r"^the\s+")

# Letters that NFD does not decompose into base + combining mark.
_LETTER_SUBSTITUTIONS = str.maketrans(
    {
        "ø": "o",
        "Ø": "o",
        "æ": "ae",
        "Æ": "ae",
        "å": "a",
        "Å": "a",
        "ð": "d",
        "Ð": "d",
        "þ": "th",
        "Þ": "th",
        "ß": "ss",
        "ł": "l",
        "Ł": "l",
        "œ": "oe",
        "Œ": "oe",
        "đ": "d",
        "Đ": "d",
        "ı": "i",
    }
)


def fold_diacritics(value: str) -> str:
    """Strip combining marks and substitute letters NFD leaves intact (ø, æ, þ, ...)."""

    decomposed = unicodedata.normalize("NFD", value.translate(_LETTER_SUBSTITUTIONS))
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def reorder_last_first(value: str) -> str:
    """Turn "Hovland, Viktor" into "Viktor Hovland"; other input is returned as is."""

    if "," not in value:
        return value
    last, _, first = value.partition(",")
    return f"{first.strip()} {last.strip()}".strip()


def normalize_name(value: str | None) -> str:
    """Normalize a person name into a cross-provider join key.

    Pure and idempotent: ``normalize_name(normalize_name(x)) == normalize_name(x)``.
    """

    if not value:
        return ""
    v = fold_diacritics(reorder_last_first(value)).lower()
    v = _non_alpha_re.sub("", v)
    v = _whitespace_re.sub(" ", v)
    return v.strip()


def normalize_event_name(value: str | None) -> str:
    """Normalize an event/course name; keeps digits and drops a leading "the"."""

    if not value:
        return ""
    v = fold_diacritics(value).lower().strip()
    v = _leading_the_re.sub("", v)
    v = _non_alnum_re.sub("", v)
    v = _whitespace_re.sub(" ", v)
    return v.strip()


def split_name(raw: str | None) -> tuple[str, str]:
    """Split "Last, First" or "First Last" into (first, last)."""

    if not raw or not raw.strip():
        return "", ""
    if "," in raw:
        last, _, first = raw.partition(",")
        return first.strip(), last.strip()
    parts = raw.split()
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], " ".join(parts[1:])


def name_variants(name: str | None, first: str | None, last: str | None) -> set[str]:
    """All normalized forms a canonical player can be matched by."""

    variants = {normalize_name(name)}
    if first and last:
        variants.add(normalize_name(f"{first} {last}"))
        variants.add(normalize_name(f"{last} {first}"))
    variants.discard("")
    return variants

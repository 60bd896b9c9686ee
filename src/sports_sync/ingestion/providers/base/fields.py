from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class FieldMap:
    """Canonical field name -> ordered provider field aliases.

    Built once per adapter; `get` returns the first alias present with a non-empty value.
    """

    aliases: Mapping[str, Sequence[str]]

    def get(self, record: Mapping[str, Any], field: str, default: Any = None) -> Any:
        for alias in self.aliases[field]:
            value = record.get(alias)
            if value is not None and value != "":
                return value
        return default

    def get_str(self, record: Mapping[str, Any], field: str) -> str | None:
        value = self.get(record, field)
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def get_int(self, record: Mapping[str, Any], field: str) -> int | None:
        return to_int(self.get(record, field))

    def get_float(self, record: Mapping[str, Any], field: str) -> float | None:
        return to_float(self.get(record, field))

    def get_bool(self, record: Mapping[str, Any], field: str) -> bool:
        return to_bool(self.get(record, field))


def to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(float(str(value).replace(",", "").strip()))
    except (TypeError, ValueError):
        return None


def to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).replace(",", "").replace("$", "").replace("%", "").strip()
    if not text or text.upper() == "NA":
        return None
    try:
        return float(text)
    except ValueError:
        return None


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "t"}
    return False


def parse_to_par(value: Any) -> int | None:
    """"E" -> 0, "-12" -> -12, "+3" -> 3; numbers pass through."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    text = str(value).strip().upper()
    if text == "E":
        return 0
    try:
        return int(text.replace("+", ""))
    except ValueError:
        return None


def parse_position(value: Any) -> tuple[int | None, bool | None]:
    """"T5" -> (5, True), "5" / 5 -> (5, False), "CUT" / "WD" -> (None, None)."""
    if value is None or isinstance(value, bool):
        return None, None
    if isinstance(value, int):
        return value, False
    text = str(value).strip().upper()
    tied = text.startswith("T")
    digits = text[1:] if tied else text
    if not digits.isdigit():
        return None, None
    return int(digits), tied

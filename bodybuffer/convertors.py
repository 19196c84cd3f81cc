from __future__ import annotations

import re
from typing import ClassVar

from starlette.convertors import Convertor, register_url_convertor

DEFAULT_MAX_BODY_SIZE = 8 * 1024 * 1024  # 8 MiB

UNITS = {"": 1, "k": 1024, "m": 1024**2, "g": 1024**3}


class ByteSizeConvertor(Convertor[int]):
    """
    Converts between byte counts and human readable sizes such as `"8M"`.

    Suffixes are binary (`K` = 1024) and case-insensitive. A trailing `B`
    is tolerated, so `"8MB"` and `"8m"` are the same value.
    """

    regex: ClassVar[str] = "0*[1-9][0-9]*[kKmMgG][bB]?|[0-9]+"

    pattern = re.compile(r"\s*([0-9]+)\s*(?:([kmg])b?)?\s*", re.IGNORECASE)

    def convert(self, value: str) -> int:
        match = self.pattern.fullmatch(value)
        if match is None:
            raise ValueError(f"Invalid size {value!r}, expected <integer>[K|M|G]")
        number, unit = match.groups()
        multiplier = UNITS[(unit or "").lower()]
        if unit and int(number) <= 0:
            raise ValueError(f"Invalid size {value!r}, multiplier must be positive")
        return int(number) * multiplier

    def to_string(self, value: int) -> str:
        value = int(value)
        if value < 0:
            raise ValueError("Negative sizes are not supported")
        for unit in ("g", "m", "k"):
            multiplier = UNITS[unit]
            if value and value % multiplier == 0:
                return f"{value // multiplier}{unit.upper()}"
        return str(value)


size_convertor = ByteSizeConvertor()


def parse_size(value: int | str | None) -> int:
    """Resolve a size limit into a non-negative number of bytes."""
    if value is None:
        return DEFAULT_MAX_BODY_SIZE
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"Invalid size {value!r}, expected an integer or a size string")
    if isinstance(value, int):
        if value < 0:
            raise ValueError("Negative sizes are not supported")
        return value
    return size_convertor.convert(value)


def format_size(value: int) -> str:
    return size_convertor.to_string(value)


def register_size_convertor(key: str = "bytesize") -> None:
    register_url_convertor(key, size_convertor)

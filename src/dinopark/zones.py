"""The fixed park grid.

Zones are addressed by a column letter (``A``-``Z``) followed by a row
number (``0``-``15``), e.g. ``"A0"``, ``"E10"``, ``"Z15"``. The grid never
changes at runtime.
"""

from __future__ import annotations

from dinopark._constants import ZONE_COLUMNS, ZONE_ROW_COUNT
from dinopark.exceptions import InvalidZoneCodeError

_ALL_CODES: tuple[str, ...] = tuple(f"{column}{row}" for column in ZONE_COLUMNS for row in range(ZONE_ROW_COUNT))
_CODE_SET = frozenset(_ALL_CODES)


def enumerate_zone_codes() -> list[str]:
    """Return all 416 zone codes, column by column (``A0`` .. ``A15``, ``B0`` .. ``Z15``)."""
    return list(_ALL_CODES)


def is_valid_zone_code(code: object) -> bool:
    return isinstance(code, str) and code in _CODE_SET


def normalize_zone_code(code: object) -> str:
    """Strip and upper-case *code*, raising :class:`InvalidZoneCodeError` if it is off-grid."""
    if not isinstance(code, str):
        raise InvalidZoneCodeError(code)
    normalized = code.strip().upper()
    if normalized not in _CODE_SET:
        raise InvalidZoneCodeError(code)
    return normalized


def split_zone_code(code: str) -> tuple[str, int]:
    """Split a valid zone code into ``(column, row)``."""
    normalized = normalize_zone_code(code)
    return normalized[0], int(normalized[1:])

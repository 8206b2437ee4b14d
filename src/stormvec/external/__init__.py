"""External data readers."""

from stormvec.external.ibtracs import IBTRACS_COLUMNS, read_ibtracs

__all__ = [
    "IBTRACS_COLUMNS",
    "read_ibtracs",
]

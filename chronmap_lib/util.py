import re
from typing import Optional


def is_blank(name: Optional[str]) -> bool:
    """True for None, the empty string and whitespace-only strings."""
    return name is None or not name.strip()


def snapshot_file_name(name: str, suffix: str = ".db") -> str:
    """Derive a snapshot file name from a logical store name.

    Path separators and other characters that are unsafe in file names are
    replaced with underscores; everything else is kept so `orders` maps to
    `orders.db`.
    """
    base = re.sub(r'[\\/:*?"<>|\s]+', '_', name.strip())
    return base + suffix

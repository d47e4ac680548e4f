from typing import List, Optional


SIZE_ORDER: List[str] = ["XS", "S", "M", "L", "XL", "XXL"]

DEFAULT_SIZE = "M"


def normalize_size(size: Optional[str]) -> Optional[str]:
    if size is None:
        return None
    s = str(size).strip().upper()
    return s or None


def _step(size: Optional[str], offset: int) -> str:
    s = normalize_size(size) or DEFAULT_SIZE
    if s not in SIZE_ORDER:
        # Tokens outside the ladder (e.g. "38") cannot be stepped
        return s
    idx = SIZE_ORDER.index(s) + offset
    idx = max(0, min(len(SIZE_ORDER) - 1, idx))
    return SIZE_ORDER[idx]


def next_larger(size: Optional[str]) -> str:
    return _step(size, 1)


def next_smaller(size: Optional[str]) -> str:
    return _step(size, -1)

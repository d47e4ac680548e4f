import math
from typing import Any, Dict, List, Mapping, Optional


TRACKED_REGIONS: List[str] = ["shoulders", "bust", "waist", "hips", "length"]

# Alternate spellings seen in user profiles, catalog records and design specs
REGION_ALIASES = {
    "shoulder": "shoulders",
    "shoulder_width": "shoulders",
    "shoulderwidth": "shoulders",
    "shoulder_to_shoulder": "shoulders",
    "chest": "bust",
    "hip": "hips",
}


def _to_cm(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        v = float(value)
    elif isinstance(value, str):
        try:
            v = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(v) or v <= 0:
        return None
    return v


def normalize_measurements(raw: Optional[Mapping[str, Any]]) -> Dict[str, float]:
    """Map a raw measurement mapping onto canonical region names.

    Unusable values (missing, non-numeric, non-finite or non-positive) are
    dropped rather than zeroed. ``height`` stands in for ``length`` only when
    no explicit length was given.
    """
    if not raw:
        return {}
    out: Dict[str, float] = {}
    height: Optional[float] = None
    for k, v in raw.items():
        cm = _to_cm(v)
        if cm is None:
            continue
        key = str(k).strip().lower()
        if key == "height":
            height = cm
            continue
        key = REGION_ALIASES.get(key, key)
        out[key] = cm
    if "length" not in out and height is not None:
        out["length"] = height
    return out


def merge_measurements(base: Mapping[str, float], overrides: Mapping[str, float]) -> Dict[str, float]:
    merged = dict(base)
    merged.update(overrides)
    return merged

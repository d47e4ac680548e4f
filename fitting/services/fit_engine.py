"""Fit scoring for virtual try-on.

Two independent scorers live here: one for catalog products, which come in
graded sizes, and one for made-to-measure custom designs, which are cut to
the customer and only get a light adjustment. Both are pure functions of
their arguments.
"""
import math
from typing import Any, Dict, Mapping, Optional

from ..schemas.fitting import CatalogFitResult, CustomDesign, CustomDesignFitResult, Product
from .measurements import TRACKED_REGIONS, merge_measurements, normalize_measurements
from .sizes import DEFAULT_SIZE, next_larger, next_smaller, normalize_size


# Contribution of each region to the catalog fit score
REGION_WEIGHTS: Dict[str, float] = {
    "shoulders": 0.15,
    "bust": 0.25,
    "waist": 0.25,
    "hips": 0.25,
    "length": 0.10,
}

# Points lost per unit of relative difference; 20% off already hits the floor
RELATIVE_PENALTY = 250.0
REGION_SCORE_FLOOR = 50
NO_DATA_SCORE = 85

SIZE_UP_BELOW = 75
SIZE_DOWN_ABOVE = 95

# Descriptor thresholds, checked top-down
REGION_DESCRIPTORS = [
    (95, "Perfect fit"),
    (85, "Good fit"),
    (75, "Acceptable fit"),
    (65, "Slightly tight"),
    (55, "Tight fit"),
]
NO_DATA_DESCRIPTOR = "No data available"

CUSTOM_BASE_SCORE = 90.0
CUSTOM_PENALTIES: Dict[str, float] = {
    "bust": 0.3,
    "waist": 0.5,
}
SHOULDER_TOLERANCE_CM = 1.0


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _uniform_details(descriptor: str) -> Dict[str, str]:
    return {r: descriptor for r in TRACKED_REGIONS}


def catalog_fallback(size: Optional[str] = None) -> CatalogFitResult:
    """Generic estimate used when either side has no measurements at all."""
    return CatalogFitResult(
        fit="Standard",
        size_recommendation=normalize_size(size) or DEFAULT_SIZE,
        fit_score=75,
        fit_details=_uniform_details("Standard fit"),
    )


CUSTOM_FALLBACK = CustomDesignFitResult(
    fit="Perfect",
    fit_score=95,
    fit_details=_uniform_details("Perfect fit"),
)


def region_score(user_cm: Optional[float], garment_cm: Optional[float]) -> Optional[int]:
    if user_cm is None or garment_cm is None or garment_cm <= 0:
        return None
    relative_difference = abs(user_cm - garment_cm) / garment_cm
    return _round_half_up(max(REGION_SCORE_FLOOR, 100.0 - relative_difference * RELATIVE_PENALTY))


def describe_region(score: Optional[int]) -> str:
    if score is None:
        return NO_DATA_DESCRIPTOR
    for threshold, label in REGION_DESCRIPTORS:
        if score >= threshold:
            return label
    return "Poor fit"


def categorize_catalog(fit_score: int) -> str:
    if fit_score < 70:
        return "poor"
    if fit_score < 80:
        return "tight"
    if fit_score < 90:
        return "good"
    return "perfect"


def categorize_custom(fit_score: float) -> str:
    if fit_score < 40:
        return "Tight"
    if fit_score > 80:
        return "Loose"
    return "Standard"


def recommend_size(fit_score: int, selected_size: Optional[str]) -> str:
    size = normalize_size(selected_size) or DEFAULT_SIZE
    if fit_score < SIZE_UP_BELOW:
        return next_larger(size)
    # An exact 100 keeps the selected size
    if SIZE_DOWN_ABOVE < fit_score < 100:
        return next_smaller(size)
    return size


def effective_garment_measurements(product: Product, selected_size: Optional[str]) -> Dict[str, float]:
    base = normalize_measurements(product.base_measurements)
    size = normalize_size(selected_size)
    overrides: Dict[str, float] = {}
    if size:
        for variant in product.sizes:
            if normalize_size(variant.size) == size:
                overrides = normalize_measurements(variant.measurements)
                break
    return merge_measurements(base, overrides)


def score_catalog_fit(
    user_measurements: Optional[Mapping[str, Any]],
    product: Optional[Product],
    selected_size: Optional[str],
) -> CatalogFitResult:
    user = normalize_measurements(user_measurements)
    garment = effective_garment_measurements(product, selected_size) if product is not None else {}
    if not user or not garment:
        return catalog_fallback(selected_size)

    scores: Dict[str, Optional[int]] = {
        r: region_score(user.get(r), garment.get(r)) for r in TRACKED_REGIONS
    }

    weighted = 0.0
    used_weight = 0.0
    for r, s in scores.items():
        if s is None:
            continue
        weighted += s * REGION_WEIGHTS[r]
        used_weight += REGION_WEIGHTS[r]

    fit_score = _round_half_up(weighted / used_weight) if used_weight > 0 else NO_DATA_SCORE

    return CatalogFitResult(
        fit=categorize_catalog(fit_score),
        size_recommendation=recommend_size(fit_score, selected_size),
        fit_score=fit_score,
        fit_details={r: describe_region(s) for r, s in scores.items()},
    )


def _shoulder_descriptor(user_cm: Optional[float], design_cm: Optional[float]) -> str:
    if user_cm is None or design_cm is None:
        return "Perfect fit"
    if user_cm > design_cm + SHOULDER_TOLERANCE_CM:
        return "Slightly tight across shoulders"
    if user_cm < design_cm - SHOULDER_TOLERANCE_CM:
        return "Slightly loose on shoulders"
    return "Perfect fit"


def score_custom_design_fit(
    user_measurements: Optional[Mapping[str, Any]],
    custom_design: Optional[CustomDesign],
) -> CustomDesignFitResult:
    user = normalize_measurements(user_measurements)
    design = normalize_measurements(custom_design.specifications()) if custom_design is not None else {}
    if not user or not design:
        return CUSTOM_FALLBACK

    score = CUSTOM_BASE_SCORE
    for region, factor in CUSTOM_PENALTIES.items():
        if region in user and region in design:
            score -= abs(user[region] - design[region]) * factor
    score = max(0.0, min(100.0, score))

    details = _uniform_details("Perfect fit")
    details["shoulders"] = _shoulder_descriptor(user.get("shoulders"), design.get("shoulders"))

    return CustomDesignFitResult(
        fit=categorize_custom(score),
        fit_score=score,
        fit_details=details,
    )


def is_fallback(result: Any) -> bool:
    if isinstance(result, CatalogFitResult):
        return result.fit == "Standard"
    if isinstance(result, CustomDesignFitResult):
        return result.fit == "Perfect"
    return False

from fastapi import APIRouter, Depends
import structlog

from ..security import verify_api_key
from ..services.fit_engine import is_fallback, score_catalog_fit, score_custom_design_fit
from ..schemas.fitting import CatalogFitRequest, CatalogFitResult, CustomDesignFitResult, CustomFitRequest


logger = structlog.get_logger("fitting")

router = APIRouter(prefix="/fit", tags=["fit"], dependencies=[Depends(verify_api_key)])


@router.post("/catalog", response_model=CatalogFitResult)
async def score_catalog(body: CatalogFitRequest) -> CatalogFitResult:
    """Score a catalog product against measurements supplied by the caller."""
    result = score_catalog_fit(body.user_measurements, body.product, body.selected_size)
    if is_fallback(result):
        logger.warning("fitting_fallback_used", path="catalog", has_measurements=bool(body.user_measurements), has_product=body.product is not None)
    return result


@router.post("/custom", response_model=CustomDesignFitResult)
async def score_custom(body: CustomFitRequest) -> CustomDesignFitResult:
    result = score_custom_design_fit(body.user_measurements, body.custom_design)
    if is_fallback(result):
        logger.warning("fitting_fallback_used", path="custom", has_measurements=bool(body.user_measurements), has_design=body.custom_design is not None)
    return result

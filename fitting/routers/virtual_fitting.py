from typing import List, Optional

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from ..config import settings
from ..security import get_current_user
from ..services.catalog_api import CatalogApiClient, CatalogRecordError
from ..services.fit_engine import is_fallback, score_catalog_fit, score_custom_design_fit
from ..services.notes import FittingNotesWriter
from ..services.profile_store import store
from ..schemas.fitting import (
    CustomDesign,
    FittingProfile,
    ItemSummary,
    Product,
    ProfileUpdate,
    TryOnEntry,
    TryOnRequest,
    TryOnResponse,
    TryOnResult,
)


logger = structlog.get_logger("fitting")

router = APIRouter(prefix="/virtual-fitting", tags=["virtual-fitting"])


@router.post("/profile", response_model=FittingProfile, status_code=status.HTTP_201_CREATED)
async def upload_profile(body: ProfileUpdate, user_id: str = Depends(get_current_user)) -> FittingProfile:
    if body.user_image is None and not body.measurements:
        raise HTTPException(status_code=400, detail="User image or measurements are required")
    profile = store.upsert(user_id, measurements=body.measurements, user_image=body.user_image)
    logger.info("fitting_profile_saved", user_id=user_id, regions=sorted(profile.measurements.keys()))
    return profile


@router.get("/profile", response_model=FittingProfile)
async def get_profile(user_id: str = Depends(get_current_user)) -> FittingProfile:
    profile = store.get(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Virtual fitting profile not found")
    return profile


async def _resolve_product(body: TryOnRequest, client: CatalogApiClient) -> Product:
    # An id always goes through the catalog; inline records are only used without one
    product = body.product
    if body.product_id is not None:
        try:
            product = await client.get_product(body.product_id)
        except (httpx.HTTPError, CatalogRecordError) as e:
            logger.error("catalog_lookup_failed", kind="product", product_id=body.product_id, error=str(e))
            raise HTTPException(status_code=502, detail="Failed to fetch product from catalog service")
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


async def _resolve_custom_design(body: TryOnRequest, client: CatalogApiClient, user_id: str) -> CustomDesign:
    design = body.custom_design
    if body.custom_design_id is not None:
        try:
            design = await client.get_custom_design(body.custom_design_id)
        except (httpx.HTTPError, CatalogRecordError) as e:
            logger.error("catalog_lookup_failed", kind="custom_design", custom_design_id=body.custom_design_id, error=str(e))
            raise HTTPException(status_code=502, detail="Failed to fetch custom design from catalog service")
    if design is None:
        raise HTTPException(status_code=404, detail="Custom design not found")
    # Designs belong to one shopper; an unowned design is not open to everyone
    if design.user != user_id:
        logger.warning("custom_design_access_denied", user_id=user_id, custom_design_id=design.id or body.custom_design_id, owner=design.user)
        raise HTTPException(status_code=403, detail="Not authorized to try on this design")
    return design


@router.post("/try-on", response_model=TryOnResponse)
async def try_on(body: TryOnRequest, user_id: str = Depends(get_current_user)) -> TryOnResponse:
    profile = store.get(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Virtual fitting profile not found. Please upload a photo first.")

    has_product = body.product_id is not None or body.product is not None
    has_design = body.custom_design_id is not None or body.custom_design is not None
    if not has_product and not has_design:
        raise HTTPException(status_code=400, detail="Product ID or Custom Design ID is required")

    client = CatalogApiClient()
    size = body.size or settings.default_size
    product_summary: Optional[ItemSummary] = None
    design_summary: Optional[ItemSummary] = None

    # A product takes precedence when both are supplied
    if has_product:
        product = await _resolve_product(body, client)
        result = score_catalog_fit(profile.measurements, product, size)
        product_summary = ItemSummary(id=product.id or body.product_id, name=product.name)
    else:
        design = await _resolve_custom_design(body, client, user_id)
        result = score_custom_design_fit(profile.measurements, design)
        design_summary = ItemSummary(id=design.id or body.custom_design_id, name=design.name)

    if is_fallback(result):
        logger.warning("fitting_fallback_used", user_id=user_id, path=result.source, has_measurements=bool(profile.measurements))

    notes = await FittingNotesWriter().write(result, size=size)
    entry = TryOnEntry(
        product=product_summary.id if product_summary else None,
        custom_design=design_summary.id if design_summary else None,
        size=size,
        color=body.color,
        fitting_result=result,
        fitting_notes=notes,
    )
    store.append_entry(user_id, entry)

    logger.info("try_on_scored", user_id=user_id, entry_id=entry.id, path=result.source, fit=result.fit, fit_score=result.fit_score)

    return TryOnResponse(
        try_on_result=TryOnResult(
            entry_id=entry.id,
            fitting_result=result,
            fitting_notes=notes,
            product=product_summary,
            custom_design=design_summary,
        )
    )


@router.get("/history", response_model=List[TryOnEntry])
async def get_history(user_id: str = Depends(get_current_user)) -> List[TryOnEntry]:
    if store.get(user_id) is None:
        raise HTTPException(status_code=404, detail="Virtual fitting profile not found")
    return store.history(user_id)


@router.delete("/history/{entry_id}")
async def delete_history_entry(entry_id: str, user_id: str = Depends(get_current_user)):
    if store.get(user_id) is None:
        raise HTTPException(status_code=404, detail="Virtual fitting profile not found")
    if not store.delete_entry(user_id, entry_id):
        raise HTTPException(status_code=404, detail="Try-on entry not found")
    logger.info("try_on_entry_deleted", user_id=user_id, entry_id=entry_id)
    return {"success": True, "message": "Try-on entry deleted successfully"}

import httpx
from typing import Any, Dict, Optional
from pydantic import ValidationError
from ..config import settings
from ..schemas.fitting import CustomDesign, Product


class CatalogRecordError(Exception):
    """The catalog answered, but not with a usable record."""


class CatalogApiClient:
    """Read-only access to product and custom design records."""

    def __init__(self) -> None:
        self.base = settings.catalog_api_base.rstrip("/")
        self.token = settings.catalog_api_token
        self.timeout = settings.catalog_timeout_seconds

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _get_record(self, path: str) -> Optional[Dict[str, Any]]:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.get(f"{self.base}{path}", headers=self._headers())
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            try:
                payload = resp.json()
            except ValueError as e:
                raise CatalogRecordError(f"catalog returned invalid JSON for {path}") from e
        # Some deployments wrap records as {"product": {...}} / {"customDesign": {...}}
        if isinstance(payload, dict):
            for key in ("product", "customDesign", "data"):
                if isinstance(payload.get(key), dict):
                    return payload[key]
        return payload

    async def get_product(self, product_id: str) -> Optional[Product]:
        record = await self._get_record(f"/products/{product_id}")
        if record is None:
            return None
        try:
            return Product.model_validate(record)
        except ValidationError as e:
            raise CatalogRecordError(f"malformed product record {product_id}") from e

    async def get_custom_design(self, design_id: str) -> Optional[CustomDesign]:
        record = await self._get_record(f"/custom-designs/{design_id}")
        if record is None:
            return None
        try:
            return CustomDesign.model_validate(record)
        except ValidationError as e:
            raise CatalogRecordError(f"malformed custom design record {design_id}") from e

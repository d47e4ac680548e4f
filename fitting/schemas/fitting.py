from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Catalog records and client payloads use camelCase; Python code uses snake_case.
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Values are kept raw; services.measurements decides which ones are usable
MeasurementSet = Dict[str, Any]


class SizeVariant(CamelModel):
    size: str
    quantity: int = 0
    measurements: MeasurementSet = Field(default_factory=dict)


class Product(CamelModel):
    id: Optional[str] = Field(None, alias="_id")
    name: Optional[str] = None
    base_measurements: Optional[MeasurementSet] = None
    sizes: List[SizeVariant] = Field(default_factory=list)


class DesignElements(CamelModel):
    measurements: Optional[MeasurementSet] = None


class CustomDesign(CamelModel):
    id: Optional[str] = Field(None, alias="_id")
    name: Optional[str] = None
    user: Optional[str] = None
    design_specifications: Optional[MeasurementSet] = None
    design_elements: Optional[DesignElements] = None

    def specifications(self) -> Optional[MeasurementSet]:
        if self.design_specifications:
            return self.design_specifications
        if self.design_elements and self.design_elements.measurements:
            return self.design_elements.measurements
        return None


class CatalogFitResult(CamelModel):
    model_config = ConfigDict(frozen=True)

    source: Literal["catalog"] = "catalog"
    fit: Literal["poor", "tight", "good", "perfect", "Standard"]
    size_recommendation: str
    fit_score: int
    fit_details: Dict[str, str]


class CustomDesignFitResult(CamelModel):
    model_config = ConfigDict(frozen=True)

    source: Literal["custom"] = "custom"
    fit: Literal["Tight", "Standard", "Loose", "Perfect"]
    size_recommendation: Literal["Custom"] = "Custom"
    fit_score: float
    fit_details: Dict[str, str]


FittingResult = Annotated[Union[CatalogFitResult, CustomDesignFitResult], Field(discriminator="source")]


class TryOnEntry(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    product: Optional[str] = None
    custom_design: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None
    fitting_result: FittingResult
    fitting_notes: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))


class FittingProfile(CamelModel):
    user: str
    user_image: Optional[str] = None
    measurements: MeasurementSet = Field(default_factory=dict)
    fitted_products: List[TryOnEntry] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))


class ProfileUpdate(CamelModel):
    user_image: Optional[str] = None
    measurements: Optional[MeasurementSet] = None


class TryOnRequest(CamelModel):
    product_id: Optional[str] = None
    custom_design_id: Optional[str] = None
    # Inline records let callers that already hold the catalog data skip the lookup
    product: Optional[Product] = None
    custom_design: Optional[CustomDesign] = None
    size: Optional[str] = None
    color: Optional[str] = None


class ItemSummary(CamelModel):
    id: Optional[str] = None
    name: Optional[str] = None


class TryOnResult(CamelModel):
    entry_id: str
    fitting_result: FittingResult
    fitting_notes: str
    product: Optional[ItemSummary] = None
    custom_design: Optional[ItemSummary] = None


class TryOnResponse(CamelModel):
    success: bool = True
    try_on_result: TryOnResult


class CatalogFitRequest(CamelModel):
    user_measurements: Optional[MeasurementSet] = None
    product: Optional[Product] = None
    selected_size: Optional[str] = None


class CustomFitRequest(CamelModel):
    user_measurements: Optional[MeasurementSet] = None
    custom_design: Optional[CustomDesign] = None

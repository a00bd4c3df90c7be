from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Dict, List, Optional, Union


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CategoryFeeConfig(CamelModel):
    min_price: float = Field(..., ge=0)
    max_price: Optional[float] = None      # None = unbounded
    buyer_protection_rate: float = Field(..., ge=0, le=1)
    handling_rate: float = Field(..., ge=0, le=1)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class FeeBreakdown(CamelModel):
    category: Optional[str] = None
    price: float = 0
    buyer_protection_fee: float = 0
    handling_fee: float = 0
    total_estimated_price: float = 0
    seller_earnings: float = 0
    below_min_price: bool = False


# =========================
# REQUEST SCHEMAS
# =========================

class CategoryFeeInput(CamelModel):
    """Admin form input. Blank fields fall back to stored or default values."""

    min_price: Optional[float] = None
    max_price: Optional[float] = None
    buyer_protection_rate: Optional[float] = None
    handling_rate: Optional[float] = None


class CategoryCreate(CategoryFeeInput):
    name: str


class CategoryRename(CategoryFeeInput):
    new_name: str


class SubcategoryCreate(BaseModel):
    name: str


class CategoryOrderUpdate(BaseModel):
    order: List[str]


class CategoryIconUpdate(BaseModel):
    icon: Optional[str] = None


class FeeEstimateRequest(CamelModel):
    category: Optional[str] = None
    price: Optional[Union[float, str]] = None
    variant_prices: List[Optional[Union[float, str]]] = []


class SizeTierFees(BaseModel):
    tiers: Dict[str, CategoryFeeInput]

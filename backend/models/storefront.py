from pydantic import Field
from typing import Optional, Union

from models.fees import CamelModel


class CarouselSlide(CamelModel):
    desktop: str = ""
    tablet: str = ""
    mobile: str = ""


class DailyDeal(CamelModel):
    product_id: str = ""
    discount: Optional[Union[float, str]] = None    # percent, 0-100
    start_date: str = ""                            # ISO date
    end_date: str = ""


class MinimumPurchase(CamelModel):
    amount: float


class ShippingFee(CamelModel):
    percentage: float = Field(..., description="Additional shipping fee, 0-100 %")


class FeaturedProductCreate(CamelModel):
    product_id: str


class TrendingItemCreate(CamelModel):
    product_id: str
    category: str

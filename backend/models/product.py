from pydantic import Field
from typing import List, Literal, Optional, Union

from config.constants import MAX_VARIANT_IMAGES
from models.fees import CamelModel

# Form values arrive as typed by the user; numeric checks happen in validation
FormNumber = Optional[Union[float, str]]


class Location(CamelModel):
    country: str = ""
    state: str = ""
    city: str = ""
    address: str = ""


class Variant(CamelModel):
    color: str = ""
    size: str = ""
    price: FormNumber = None
    stock: FormNumber = None
    image_count: int = Field(0, ge=0)        # files in variantImages, in variant order
    image_urls: List[str] = []


class ProductForm(CamelModel):
    seller_name: str = ""
    seller_id: Optional[str] = None          # set by admins uploading for a seller
    name: str = ""
    description: str = ""
    price: FormNumber = None
    stock: FormNumber = None
    category: str = ""
    subcategory: str = ""
    sub_subcategory: str = ""
    colors: List[str] = []
    sizes: List[str] = []
    condition: str = "New"
    product_url: str = ""
    tags: List[str] = []
    manual_size: str = ""
    delivery_days: FormNumber = None
    variants: List[Variant] = []
    location: Location = Field(default_factory=Location)


class ProductStatusUpdate(CamelModel):
    status: Literal["approved", "rejected"]
    reason: Optional[str] = None


class VariantCreate(CamelModel):
    color: str = ""
    size: str = ""
    stock: int = Field(0, ge=0)
    price: Optional[float] = Field(None, gt=0)
    image_urls: List[str] = Field([], max_length=MAX_VARIANT_IMAGES)


class BumpRequest(CamelModel):
    duration: Literal["3d", "6d"]


class ProductEdit(CamelModel):
    """Seller edit; media arrive as URLs already uploaded through /api/upload."""
    name: str = ""
    price: FormNumber = None
    stock: FormNumber = None
    description: str = ""
    image_urls: List[str] = []
    video_urls: List[str] = []
    colors: List[str] = []
    variants: List[Variant] = []

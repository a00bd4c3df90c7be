from pydantic import EmailStr
from typing import Literal, Optional
from enum import Enum

from models.fees import CamelModel


class UserRole(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"


class AdminUserCreate(CamelModel):
    # account already exists in the auth service; this is its profile
    uid: str
    email: EmailStr
    first_name: str
    last_name: str
    role: UserRole = UserRole.BUYER


class RoleUpdate(CamelModel):
    role: UserRole


class ProSellerDecision(CamelModel):
    approve: bool


class PayoutAction(CamelModel):
    seller_id: Optional[str] = None


class AdminBankDetails(CamelModel):
    country: Literal["Nigeria", "United Kingdom"]
    bank_code: Optional[str] = None
    account_number: Optional[str] = None
    iban: Optional[str] = None
    bank_name: Optional[str] = None

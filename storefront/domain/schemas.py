# storefront/domain/schemas.py
import re
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Any, Dict, List, Optional
from decimal import Decimal
from datetime import datetime

from storefront.domain.order_status import OrderStatus, PaymentStatus, Role
from storefront.utils.settings import MAX_QUANTITY

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[0-9]{7,15}$")


class Address(BaseModel):
    """Adres wysylki / platnosci, walidacja strukturalna."""

    full_name: str
    street: str
    city: str
    state: str
    postal_code: str
    country: str
    email: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("full_name", "street", "city", "state", "postal_code", "country")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("pole nie moze byc puste")
        return v

    @field_validator("email")
    @classmethod
    def plausible_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if not EMAIL_RE.match(v):
            raise ValueError("niepoprawny email")
        return v

    @field_validator("phone")
    @classmethod
    def plausible_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        digits = re.sub(r"[\s\-()]", "", v)
        if not PHONE_RE.match(digits):
            raise ValueError("niepoprawny numer telefonu")
        return v


# ----- cart -----

class ItemIn(BaseModel):
    """Schema dla ustawienia ilosci produktu w koszyku."""

    product_id: int = Field(..., gt=0, description="ID produktu")
    quantity: int = Field(..., le=MAX_QUANTITY, description="Docelowa ilosc (nadpisuje poprzednia)")


class CartItemOut(BaseModel):
    product_id: int
    quantity: int


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    cart_id: Optional[int] = None
    user_id: int
    version: int
    items: List[CartItemOut]

    model_config = ConfigDict(from_attributes=True)


# ----- users -----

class UserCreate(BaseModel):
    """Schema dla rejestracji uzytkownika."""

    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("email")
    @classmethod
    def plausible_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_RE.match(v):
            raise ValueError("niepoprawny email")
        return v


class LoginIn(BaseModel):
    email: str
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserRead(BaseModel):
    """Schema dla uzytkownika (response)."""

    id: int
    name: str
    email: str
    role: Role

    model_config = ConfigDict(from_attributes=True)


# ----- orders -----

class OrderCreate(BaseModel):
    """Schema dla checkoutu. Adresy waliduje serwis (InvalidAddress)."""

    shipping_address: Dict[str, Any]
    billing_address: Dict[str, Any]
    payment_method: str = Field("card", min_length=1, max_length=50)
    payment_status: Optional[PaymentStatus] = None


class OrderStatusUpdate(BaseModel):
    order_status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    tracking_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=2000)


class ProductSummary(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    image: Optional[str] = None


class OrderItemOut(BaseModel):
    product_id: int
    quantity: int
    unit_price: Decimal
    product: Optional[ProductSummary] = None


class OrderOut(BaseModel):
    """Schema dla zamowienia (response)."""

    id: int
    user_id: int
    items: List[OrderItemOut]
    subtotal: Decimal
    shipping_cost: Decimal
    tax: Decimal
    total_amount: Decimal
    shipping_address: Dict[str, Any]
    billing_address: Dict[str, Any]
    payment_method: str
    payment_status: PaymentStatus
    order_status: OrderStatus
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    estimated_delivery: datetime
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_orders: int
    has_next: bool
    has_prev: bool


class OrderPage(BaseModel):
    orders: List[OrderOut]
    pagination: Pagination

# shopcore/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field

from shopcore.domain.default_set import DefaultItem


# =====================================================
# KOSZYK
# =====================================================
class CartItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0)
    variant_id: int | None = Field(None, gt=0)
    quantity: int = Field(1, gt=0, description="Ilość (musi być > 0)")


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1, description="Do usuniecia linii sluzy DELETE")


class CartLineOut(BaseModel):
    line_id: int
    product_id: int
    variant_id: int | None = None
    name: str
    sku: str
    image: str | None = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class CartOut(BaseModel):
    owner_id: str
    items: List[CartLineOut]
    subtotal: Decimal
    total_items: int


# =====================================================
# ADRESY I METODY PLATNOSCI
# =====================================================
class AddressIn(BaseModel):
    name: str = Field(..., min_length=1)
    address_line1: str = Field(..., min_length=1)
    address_line2: str | None = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    phone: str | None = None
    is_default: bool = False


class Address(AddressIn, DefaultItem):
    id: str


class PaymentMethodIn(BaseModel):
    """Nigdy nie przechowujemy pelnego numeru karty - tylko token bramki."""

    provider_token: str = Field(..., min_length=1)
    type: str = "card"
    brand: str | None = None
    last4: str | None = Field(None, min_length=4, max_length=4)
    expiry_month: int | None = Field(None, ge=1, le=12)
    expiry_year: int | None = Field(None, ge=2000)
    holder_name: str | None = None
    is_default: bool = False


class PaymentMethod(PaymentMethodIn, DefaultItem):
    id: str


# =====================================================
# WARIANTY (admin)
# =====================================================
class VariantIn(BaseModel):
    name: str = Field(..., min_length=1)
    sku: str = Field(..., min_length=1)
    price: Decimal | None = Field(None, ge=0)
    inventory: int | None = Field(None, ge=0)
    options: Dict[str, str] = Field(default_factory=dict)
    images: List[str] = Field(default_factory=list)
    is_default: bool = False


class VariantOut(BaseModel):
    id: int
    product_id: int
    name: str
    sku: str
    price: Decimal | None = None
    inventory: int | None = None
    options: Dict[str, str]
    images: List[str]
    is_default: bool

    model_config = ConfigDict(from_attributes=True)


class VariantFlag(DefaultItem):
    """Projekcja wiersza wariantu na potrzeby default_set."""

    id: int


# =====================================================
# ZAMOWIENIA
# =====================================================
class OrderCreate(BaseModel):
    shipping_address: AddressIn
    billing_address: AddressIn | None = None
    use_shipping_as_billing: bool = False
    payment_method: Literal["razorpay"] = "razorpay"
    customer_note: str | None = None
    shipping_amount: Decimal = Field(Decimal("0"), ge=0)
    tax_amount: Decimal = Field(Decimal("0"), ge=0)
    discount_amount: Decimal = Field(Decimal("0"), ge=0)


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    variant_id: int | None = None
    sku: str
    name: str
    price: Decimal
    quantity: int
    total_price: Decimal
    product_data: Dict[str, Any]

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    order_number: str
    owner_id: str
    status: str
    payment_status: str
    sub_total: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    discount_amount: Decimal
    grand_total: Decimal
    shipping_address: Dict[str, Any]
    billing_address: Dict[str, Any]
    customer_note: str | None = None
    payment_method: str
    needs_reconciliation: bool
    created_at: datetime
    items: List[OrderItemOut] = []

    model_config = ConfigDict(from_attributes=True)


class PaymentData(BaseModel):
    """Konfiguracja dla klienta bramki (checkout po stronie przegladarki)."""

    order_id: str
    amount: int
    currency: str
    key: str
    name: str
    description: str
    prefill: Dict[str, str]
    notes: Dict[str, str]


class CheckoutOut(BaseModel):
    order: OrderOut
    payment_data: PaymentData | None = None
    message: str


class OrderStatusUpdate(BaseModel):
    status: str
    admin_note: str | None = None


# =====================================================
# PLATNOSCI
# =====================================================
class PaymentVerifyIn(BaseModel):
    order_id: int = Field(..., gt=0)
    gateway_order_id: str = Field(..., min_length=1)
    gateway_payment_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)


class VerificationOut(BaseModel):
    success: bool
    message: str
    order_id: int
    order_number: str | None = None
    status: str | None = None
    payment_status: str | None = None
    already_verified: bool = False
    redirect_url: str | None = None

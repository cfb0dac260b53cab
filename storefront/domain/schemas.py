# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import Any, List, Literal, Optional
from decimal import Decimal
from datetime import datetime

from storefront.domain.colors import default_color, normalize_color
from storefront.utils.settings import DEFAULT_COUNTRY

PaymentMethod = Literal["cod", "razorpay", "stripe"]
OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]


class Color(BaseModel):
    """Kolor po normalizacji - jedyny ksztalt uzywany wewnatrz systemu."""

    name: str
    code: str


class _WithColor(BaseModel):
    color: Color = Field(default_factory=lambda: Color(**default_color()))

    @field_validator("color", mode="before")
    @classmethod
    def _normalize_color(cls, value: Any):
        if isinstance(value, Color):
            return value
        return normalize_color(value)


class CartLineItem(_WithColor):
    """Pozycja koszyka - z local storage klienta albo z koszyka w backendzie."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi byc > 0)")
    name: str = ""
    price: Decimal = Field(Decimal("0.00"), ge=0)
    quantity: int = Field(..., ge=1, description="Ilosc produktu (musi byc >= 1)")


class OrderItemIn(_WithColor):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1)


class ShippingAddress(BaseModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    pincode: str = Field(..., min_length=1)
    country: str = DEFAULT_COUNTRY


class OrderCreate(BaseModel):
    """Zamowienie z jawna lista pozycji (POST /orders)."""

    user_id: int = Field(..., gt=0)
    # pusta lista przechodzi walidacje schematu, odrzuca ja serwis (EmptyOrderError)
    items: List[OrderItemIn] = Field(default_factory=list)
    shipping_address: ShippingAddress
    payment_method: PaymentMethod = "cod"
    total_amount: Decimal = Field(..., ge=0)
    payment_confirmed: bool = False


class CheckoutIn(BaseModel):
    """Checkout z koszykiem lokalnym klienta - rozstrzyganie zrodla robi CartReconciler."""

    user_id: int = Field(..., gt=0)
    local_cart: List[CartLineItem] = Field(default_factory=list)
    shipping_address: ShippingAddress
    payment_method: PaymentMethod = "cod"
    total_amount: Decimal = Field(..., ge=0)
    payment_confirmed: bool = False


class OrderItemOut(BaseModel):
    product_id: int
    name: str
    price: Decimal
    quantity: int
    color: Color


class OrderOut(BaseModel):
    id: int
    user_id: int
    status: str
    stock_state: str
    payment_method: str
    payment_status: str
    total_amount: Decimal
    shipping_address: ShippingAddress
    items: List[OrderItemOut]
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AdjustmentOutcome(BaseModel):
    product_id: int
    quantity: int
    color_name: Optional[str] = None
    status: Literal["applied", "failed", "restored", "skipped"]
    old_stock: Optional[int] = None
    new_stock: Optional[int] = None
    error: Optional[str] = None


class PlacementOut(BaseModel):
    order: OrderOut
    adjustments: List[AdjustmentOutcome]
    message: str


class CheckoutOut(PlacementOut):
    cart_source: Literal["local", "backend"]
    sync_scheduled: bool = False


class CancelIn(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)
    force_cancel: bool = False


class CancellationOut(BaseModel):
    order: OrderOut
    restorations: List[AdjustmentOutcome]


class StatusUpdateIn(BaseModel):
    status: OrderStatus
    reason: Optional[str] = Field(None, max_length=500)
    force_cancel: bool = False


# ---------- produkty ----------

class ColorVariantIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    code: str = Field(..., pattern=r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
    stock: int = Field(0, ge=0)
    is_available: bool = True


class ColorVariantOut(BaseModel):
    name: str
    code: str
    stock: int
    is_available: bool

    model_config = ConfigDict(from_attributes=True)


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    price: Decimal = Field(..., gt=0)
    stock: Optional[int] = Field(None, ge=0)
    color_variants: List[ColorVariantIn] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_variant_names(self):
        names = [v.name.lower() for v in self.color_variants]
        if len(names) != len(set(names)):
            raise ValueError("Nazwy wariantow kolorystycznych musza byc unikalne")
        return self


class ColorVariantEdit(BaseModel):
    """
    Wariant wskazany po obecnej nazwie. Nieznana nazwa dodaje nowy wariant ze stanem 0,
    stan wariantu zmienia sie tylko przez korekty magazynowe.
    """

    name: str = Field(..., min_length=1, max_length=50)
    rename_to: Optional[str] = Field(None, min_length=1, max_length=50)
    code: Optional[str] = Field(None, pattern=r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
    is_available: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")


class ProductUpdate(BaseModel):
    """Edycja admina - bez pola stock, stan zmienia sie tylko przez korekty magazynowe."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    price: Optional[Decimal] = Field(None, gt=0)
    color_variants: Optional[List[ColorVariantEdit]] = None

    model_config = ConfigDict(extra="forbid")


class ProductOut(BaseModel):
    id: int
    name: str
    price: Decimal
    stock: int
    in_stock: bool
    variant_stock_total: int
    color_variants: List[ColorVariantOut]


class StockAdjustmentIn(BaseModel):
    delta: int
    color: Optional[str] = Field(None, description="Nazwa wariantu kolorystycznego")

    @field_validator("delta")
    @classmethod
    def _non_zero(cls, value: int) -> int:
        if value == 0:
            raise ValueError("Zmiana stanu nie moze byc zerowa")
        return value


class StockAdjustmentResult(BaseModel):
    product_id: int
    delta: int
    old_stock: int
    new_stock: int
    color_name: Optional[str] = None
    variant_old_stock: Optional[int] = None
    variant_new_stock: Optional[int] = None


class StockAdjustmentOut(BaseModel):
    id: int
    product_id: int
    color_name: Optional[str] = None
    delta: int
    old_stock: int
    new_stock: int
    order_id: Optional[int] = None
    reason: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StockDiscrepancyOut(BaseModel):
    product_id: int
    name: str
    stock: int
    variant_stock_total: int
    difference: int


# ---------- koszyk w backendzie ----------

class CartItemIn(_WithColor):
    product_id: int = Field(..., gt=0, description="ID produktu (musi byc > 0)")
    quantity: int = Field(1, gt=0, description="Ilosc produktu (musi byc > 0)")


class CartQuantityIn(BaseModel):
    quantity: int = Field(..., gt=0)
    color: Optional[str] = None


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    cart_id: Optional[int] = None
    user_id: int
    version: int
    items: List[CartLineItem]
    total: Decimal


# ---------- uzytkownicy ----------

class UserCreate(BaseModel):
    """Schema dla tworzenia uzytkownika."""

    id: int = Field(..., gt=0, description="ID uzytkownika (musi byc > 0)")
    name: str = Field(..., min_length=1, max_length=100, description="Imie uzytkownika")


class UserRead(BaseModel):
    """Schema dla uzytkownika (response)."""

    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)

# app/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Generic, List, Optional, TypeVar

from pydantic import BaseModel, EmailStr, Field, PlainSerializer

from app.domain.enums import DiscountType, OrderStatus

T = TypeVar("T")

# kwoty w odpowiedziach: Decimal w Pythonie, liczba w JSON
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


# =====================================================
# ENVELOPE
# =====================================================
class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int


class Envelope(BaseModel, Generic[T]):
    """Wspolny format odpowiedzi: {status, message?, data?, pagination?}."""

    status: str = "success"
    message: Optional[str] = None
    data: Optional[T] = None
    pagination: Optional[Pagination] = None


class HealthOut(BaseModel):
    status: str


# =====================================================
# AUTH
# =====================================================
class TokenPayload(BaseModel):
    """Zweryfikowane claimy tokena."""

    user_id: int
    role: str
    type: str
    iat: Optional[int] = None
    exp: int


class RegisterIn(BaseModel):
    # pola opcjonalne, brakujace zglasza serwis ze swoim komunikatem
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    name: Optional[str] = Field(None, max_length=100)
    phone_number: Optional[str] = Field(None, max_length=32)


class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshIn(BaseModel):
    refresh_token: Optional[str] = None


class UserOut(BaseModel):
    id: int
    email: str
    name: str
    phone_number: Optional[str] = None
    avatar_url: Optional[str] = None
    role: str
    is_verified: bool
    is_online: bool
    last_seen: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class TokenPairOut(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int


class AuthOut(TokenPairOut):
    user: UserOut


# =====================================================
# CATALOG
# =====================================================
class ProductIn(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    price: Optional[Decimal] = None
    unit: Optional[str] = Field(None, max_length=32)
    stock: int = Field(0, ge=0)
    image_url: Optional[str] = None
    is_available: bool = True


class DiscountIn(BaseModel):
    type: DiscountType
    value: Decimal = Field(..., gt=0)
    valid_from: datetime
    valid_until: datetime
    is_active: bool = True


class DiscountOut(BaseModel):
    id: int
    type: str
    value: Money
    is_active: bool
    valid_from: datetime
    valid_until: datetime


class ProductOut(BaseModel):
    id: int
    seller_id: int
    name: str
    description: Optional[str] = None
    price: Money
    currency: str
    unit: str
    stock: int
    is_available: bool
    image_url: Optional[str] = None
    rating: float
    discounted_price: Optional[Money] = None
    active_discount: Optional[DiscountOut] = None


# =====================================================
# CART
# =====================================================
class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: Optional[int] = Field(None, gt=0)
    quantity: int = Field(1, description="Ilosc produktu (musi byc > 0)")
    notes: Optional[str] = Field(None, max_length=500)


class ItemUpdateIn(BaseModel):
    quantity: Optional[int] = None
    notes: Optional[str] = Field(None, max_length=500)


class SelectIn(BaseModel):
    is_selected: Optional[bool] = None


class CartItemAddedOut(BaseModel):
    cart_item_id: int
    product_id: int
    quantity: int
    subtotal: Money
    cart_total_items: int
    cart_grand_total: Money


class CartItemUpdatedOut(BaseModel):
    cart_item_id: int
    quantity: int
    subtotal: Money
    cart_grand_total: Money


class CartTotalsOut(BaseModel):
    cart_total_items: int
    cart_grand_total: Money


class SelectionOut(BaseModel):
    cart_item_id: int
    is_selected: bool
    selected_items_total: Money


class SellerRef(BaseModel):
    user_id: int
    name: str


class CartProductOut(BaseModel):
    product_id: int
    name: str
    price: Money
    discounted_price: Optional[Money] = None
    image: Optional[str] = None
    unit: str
    stock_quantity: int
    seller: SellerRef
    availability: str


class CartLineOut(BaseModel):
    cart_item_id: int
    product: CartProductOut
    quantity: int
    unit_price: Money
    discount_price: Optional[Money] = None
    subtotal: Money
    notes: Optional[str] = None
    is_selected: bool
    is_available: bool
    added_at: datetime
    updated_at: datetime


class SellerGroupOut(BaseModel):
    seller: SellerRef
    items: List[CartLineOut]
    subtotal: Money
    delivery_fee: Money
    free_delivery_threshold: Optional[Money] = None
    is_eligible_free_delivery: bool
    amount_for_free_delivery: Money
    total: Money


class CartSummaryOut(BaseModel):
    total_items: int
    total_quantity: int
    subtotal: Money
    item_savings: Money
    total_delivery_fee: Money
    service_fee: Money
    grand_total: Money


class CartOut(BaseModel):
    cart_id: int
    items: List[CartLineOut]
    grouped_by_seller: List[SellerGroupOut]
    summary: CartSummaryOut
    unavailable_items: List[int]
    updated_at: datetime


# =====================================================
# ORDERS
# =====================================================
class OrderCreate(BaseModel):
    """Schema dla tworzenia zamowienia."""

    cart_item_ids: Optional[List[int]] = None
    delivery_address_id: Optional[int] = None
    delivery_method: str = Field("home_delivery", max_length=32)
    delivery_date: Optional[datetime] = None
    delivery_time_slot: str = Field("morning", max_length=32)
    payment_method: str = Field("bank_transfer", max_length=32)
    notes: Optional[str] = None


class CancelIn(BaseModel):
    reason: Optional[str] = None
    details: Optional[str] = None


class StatusIn(BaseModel):
    status: OrderStatus
    tracking_number: Optional[str] = Field(None, max_length=64)


class SellerStatusIn(BaseModel):
    # status albo sam numer przesylki
    status: Optional[OrderStatus] = None
    tracking_number: Optional[str] = Field(None, max_length=64)
    cancelled_reason: Optional[str] = Field(None, max_length=500)


class CreatedOrderOut(BaseModel):
    order_id: int
    order_number: str
    seller_id: int
    status: str
    subtotal: Money
    delivery_fee: Money
    service_fee: Money
    total_discount: Money
    total_amount: Money


class PaymentSummaryOut(BaseModel):
    total_orders: int
    grand_total: Money
    payment_method: str
    valid_until: datetime


class OrdersCreatedOut(BaseModel):
    orders: List[CreatedOrderOut]
    payment_summary: PaymentSummaryOut


class OrderItemOut(BaseModel):
    order_item_id: int
    product_id: Optional[int] = None
    product_name: str
    product_image: Optional[str] = None
    quantity: int
    unit_price: Money
    discount: Money
    subtotal: Money


class OrderListItemOut(BaseModel):
    order_id: int
    order_number: str
    status: str
    buyer_id: int
    seller: SellerRef
    items: List[OrderItemOut]
    item_count: int
    total_quantity: int
    total_amount: Money
    currency: str
    delivery_method: str
    tracking_number: Optional[str] = None
    created_at: datetime


class OrderListOut(BaseModel):
    orders: List[OrderListItemOut]


class DeliveryAddressOut(BaseModel):
    address_id: int
    full_address: str
    recipient_name: str
    phone: str


class DeliveryOut(BaseModel):
    method: str
    address: Optional[DeliveryAddressOut] = None
    date: Optional[datetime] = None
    time_slot: Optional[str] = None
    fee: Money
    tracking_number: Optional[str] = None


class PricingOut(BaseModel):
    subtotal: Money
    delivery_fee: Money
    service_fee: Money
    total_discount: Money
    total: Money


class PaymentOut(BaseModel):
    method: str
    status: str
    paid_at: Optional[datetime] = None


class TimelineEntry(BaseModel):
    status: str
    timestamp: datetime


class OrderDetailOut(BaseModel):
    order_id: int
    order_number: str
    status: str
    buyer_id: int
    seller: SellerRef
    items: List[OrderItemOut]
    delivery: DeliveryOut
    pricing: PricingOut
    payment: PaymentOut
    timeline: List[TimelineEntry]
    notes: Optional[str] = None
    cancelled_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class RefundOut(BaseModel):
    amount: Money
    method: str
    estimated_days: int


class CancelOut(BaseModel):
    order_id: int
    status: str
    refund: Optional[RefundOut] = None


class StatusOut(BaseModel):
    order_id: int
    status: str
    tracking_number: Optional[str] = None
    paid_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None


# =====================================================
# ADDRESSES
# =====================================================
class AddressIn(BaseModel):
    label: Optional[str] = Field(None, max_length=50)
    recipient_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=32)
    full_address: Optional[str] = None
    province: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    district: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=16)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    notes: Optional[str] = None
    is_primary: bool = False


class AddressUpdateIn(BaseModel):
    label: Optional[str] = Field(None, max_length=50)
    recipient_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=32)
    full_address: Optional[str] = None
    notes: Optional[str] = None


class AddressOut(BaseModel):
    address_id: int
    label: str
    recipient_name: str
    phone: str
    full_address: str
    province: Optional[str] = None
    city: str
    district: Optional[str] = None
    postal_code: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    notes: Optional[str] = None
    is_primary: bool
    created_at: datetime
    updated_at: datetime


class AddressListOut(BaseModel):
    addresses: List[AddressOut]
    total_count: int


class PrimaryOut(BaseModel):
    address_id: int
    is_primary: bool

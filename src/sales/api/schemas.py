"""Pydantic request/response schemas for the sales API.

These are external contracts, kept apart from the domain commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------
class RecordSaleRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)
    channel: str = Field(pattern="^(LIVE|BAZAR)$")
    customer_phone: str | None = None
    instagram: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "0b6f3c1e-6a55-4d3c-9d69-5a6c1a1f2f10",
                    "quantity": 2,
                    "channel": "LIVE",
                    "customer_phone": "(31) 99999-0000",
                }
            ]
        }
    }


class RecordSaleResponse(BaseModel):
    order_id: str
    cart_id: str
    is_new_order: bool
    customer_phone: str
    business_day: str
    total_amount: float


# ---------------------------------------------------------------------------
# Catalogue / orders
# ---------------------------------------------------------------------------
class ProductResponse(BaseModel):
    id: str
    code: str
    name: str
    price: float
    stock: int
    sale_type: str
    image_url: str | None = None


class OrderResponse(BaseModel):
    id: str
    customer_phone: str
    event_type: str
    business_day: str
    total_amount: float
    is_paid: bool
    cart_id: str | None = None
    payment_reference: str | None = None
    grand_total: float | None = None


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class ShippingOptionResponse(BaseModel):
    id: str
    name: str
    company: str
    price: float
    delivery_time: str = ""


class PricingRequest(BaseModel):
    shipping_option_id: str = "retirada"
    postal_code: str | None = None
    coupon_code: str | None = None


class GiftResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    minimum_purchase_amount: float


class GiftStatusResponse(BaseModel):
    eligible_gift: GiftResponse | None = None
    progress_gift: GiftResponse | None = None
    percentage_achieved: float = 0.0


class PricingResponse(BaseModel):
    products_total: float
    discount: float
    shipping_cost: float
    grand_total: float
    coupon_code: str | None = None
    shipping_option: str
    gift_status: GiftStatusResponse


class CheckoutRequest(BaseModel):
    shipping_option_id: str = "retirada"
    postal_code: str | None = None
    coupon_code: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    street: str | None = None
    number: str | None = None
    complement: str | None = None
    city: str | None = None
    state: str | None = None


class CheckoutResponse(BaseModel):
    order_id: str
    redirect_url: str
    payment_reference: str
    grand_total: float


class PaymentConfirmationRequest(BaseModel):
    payment_reference: str | None = None


class PaymentConfirmationResponse(BaseModel):
    order_id: str
    is_paid: bool
    already_paid: bool


# ---------------------------------------------------------------------------
# Coupons / gifts
# ---------------------------------------------------------------------------
class DiscountTierSchema(BaseModel):
    min_value: float = Field(ge=0)
    max_value: float | None = None
    percent: float = Field(ge=0, le=100)


class CreateCouponRequest(BaseModel):
    code: str
    discount_type: str = Field(pattern="^(fixed|percentage|progressive)$")
    discount_value: float = Field(ge=0, default=0.0)
    progressive_tiers: list[DiscountTierSchema] = []
    expires_at: datetime | None = None
    usage_limit: int | None = Field(ge=0, default=None)


class CouponIdResponse(BaseModel):
    coupon_id: str


class CreateGiftRequest(BaseModel):
    name: str
    description: str | None = None
    minimum_purchase_amount: float = Field(ge=0)


class GiftIdResponse(BaseModel):
    gift_id: str

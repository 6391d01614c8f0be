"""FastAPI routes for the sales domain: sales, checkout, coupons and gifts."""

import json

import structlog
from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers as register_protean_handlers
from protean.utils.globals import current_domain

from sales.api.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    CouponIdResponse,
    CreateCouponRequest,
    CreateGiftRequest,
    GiftIdResponse,
    GiftStatusResponse,
    OrderResponse,
    PaymentConfirmationRequest,
    PaymentConfirmationResponse,
    PricingRequest,
    PricingResponse,
    ProductResponse,
    RecordSaleRequest,
    RecordSaleResponse,
    ShippingOptionResponse,
)
from sales.catalogue.product import Product
from sales.checkout.checkout import StartCheckout
from sales.checkout.confirmation import ConfirmPayment
from sales.checkout.quote import preview_pricing, shipping_options_for_order
from sales.coupon.management import CreateCoupon
from sales.errors import ConflictError, ExternalServiceError
from sales.gift.management import CreateGift
from sales.order.aggregation import RecordSale
from sales.order.order import Order
from sales.shared.business_day import business_day, parse_business_day
from sales.shared.phone import normalize_for_storage

logger = structlog.get_logger(__name__)


def _order_response(order) -> OrderResponse:
    return OrderResponse(
        id=str(order.id),
        customer_phone=order.customer_phone,
        event_type=order.event_type,
        business_day=order.business_day,
        total_amount=order.total_amount,
        is_paid=order.is_paid,
        cart_id=str(order.cart_id) if order.cart_id else None,
        payment_reference=order.payment_reference,
        grand_total=order.grand_total,
    )


# ---------------------------------------------------------------------------
# Sales Router
# ---------------------------------------------------------------------------
sale_router = APIRouter(tags=["sales"])


@sale_router.post("/sales", status_code=201, response_model=RecordSaleResponse)
async def record_sale(body: RecordSaleRequest) -> RecordSaleResponse:
    command = RecordSale(
        product_id=body.product_id,
        quantity=body.quantity,
        channel=body.channel,
        customer_phone=body.customer_phone,
        instagram=body.instagram,
    )
    result = current_domain.process(command, asynchronous=False)
    return RecordSaleResponse(**result)


@sale_router.get("/products", response_model=list[ProductResponse])
async def list_products(
    channel: str = Query(pattern="^(LIVE|BAZAR)$"),
    q: str | None = None,
) -> list[ProductResponse]:
    products = current_domain.repository_for(Product).for_channel(channel, search=q)
    return [
        ProductResponse(
            id=str(p.id),
            code=p.code,
            name=p.name,
            price=p.price,
            stock=p.stock,
            sale_type=p.sale_type,
            image_url=p.image_url,
        )
        for p in products
    ]


@sale_router.get("/orders", response_model=list[OrderResponse])
async def list_open_orders(business_day_: str | None = Query(None, alias="business_day"), channel: str | None = None):
    try:
        day = parse_business_day(business_day_) if business_day_ else business_day()
    except ValueError:
        raise ValidationError({"business_day": [f"Invalid date {business_day_!r}, expected YYYY-MM-DD"]}) from None
    orders = current_domain.repository_for(Order).open_for_day(day, channel=channel)
    return [_order_response(o) for o in orders]


@sale_router.get("/customers/{phone}/open-orders", response_model=list[OrderResponse])
async def list_customer_open_orders(phone: str):
    orders = current_domain.repository_for(Order).open_for_customer(normalize_for_storage(phone))
    return [_order_response(o) for o in orders]


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/orders", tags=["checkout"])


@checkout_router.get("/{order_id}/shipping-options", response_model=list[ShippingOptionResponse])
async def shipping_options(order_id: str, postal_code: str | None = None):
    options = shipping_options_for_order(order_id, postal_code)
    return [
        ShippingOptionResponse(
            id=str(o.id),
            name=o.name,
            company=o.company,
            price=o.cost,
            delivery_time=o.delivery_time,
        )
        for o in options
    ]


@checkout_router.post("/{order_id}/pricing", response_model=PricingResponse)
async def price_order(order_id: str, body: PricingRequest) -> PricingResponse:
    pricing = preview_pricing(
        order_id,
        shipping_option_id=body.shipping_option_id,
        postal_code=body.postal_code,
        coupon_code=body.coupon_code,
    )
    return PricingResponse(
        products_total=pricing.products_total,
        discount=pricing.discount,
        shipping_cost=pricing.shipping_cost,
        grand_total=pricing.grand_total,
        coupon_code=pricing.coupon_code,
        shipping_option=pricing.shipping_option,
        gift_status=GiftStatusResponse(**pricing.gift_status.to_dict()),
    )


@checkout_router.post("/{order_id}/checkout", status_code=201, response_model=CheckoutResponse)
async def start_checkout(order_id: str, body: CheckoutRequest) -> CheckoutResponse:
    command = StartCheckout(order_id=order_id, **body.model_dump(exclude_none=True))
    result = current_domain.process(command, asynchronous=False)
    return CheckoutResponse(**result)


@checkout_router.post("/{order_id}/payment-confirmation", response_model=PaymentConfirmationResponse)
async def confirm_payment(order_id: str, body: PaymentConfirmationRequest) -> PaymentConfirmationResponse:
    command = ConfirmPayment(order_id=order_id, payment_reference=body.payment_reference)
    result = current_domain.process(command, asynchronous=False)
    return PaymentConfirmationResponse(**result)


# ---------------------------------------------------------------------------
# Coupon / Gift Routers
# ---------------------------------------------------------------------------
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


@coupon_router.post("", status_code=201, response_model=CouponIdResponse)
async def create_coupon(body: CreateCouponRequest) -> CouponIdResponse:
    command = CreateCoupon(
        code=body.code,
        discount_type=body.discount_type,
        discount_value=body.discount_value,
        progressive_tiers=json.dumps([t.model_dump() for t in body.progressive_tiers]),
        expires_at=body.expires_at,
        usage_limit=body.usage_limit,
    )
    result = current_domain.process(command, asynchronous=False)
    return CouponIdResponse(coupon_id=result)


gift_router = APIRouter(prefix="/gifts", tags=["gifts"])


@gift_router.post("", status_code=201, response_model=GiftIdResponse)
async def create_gift(body: CreateGiftRequest) -> GiftIdResponse:
    command = CreateGift(
        name=body.name,
        description=body.description,
        minimum_purchase_amount=body.minimum_purchase_amount,
    )
    result = current_domain.process(command, asynchronous=False)
    return GiftIdResponse(gift_id=result)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
def _error_response(status_code: int, exc) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": getattr(exc, "messages", None) or str(exc)})


def register_error_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP status codes on top of protean's defaults."""
    register_protean_handlers(app)

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return _error_response(422, exc)

    @app.exception_handler(ObjectNotFoundError)
    async def not_found(request: Request, exc: ObjectNotFoundError):
        return _error_response(404, exc)

    @app.exception_handler(ConflictError)
    async def conflict(request: Request, exc: ConflictError):
        return _error_response(409, exc)

    @app.exception_handler(ExternalServiceError)
    async def external_service_error(request: Request, exc: ExternalServiceError):
        logger.warning("External service failed", service=exc.service, detail=exc.detail, path=request.url.path)
        return _error_response(502, exc)

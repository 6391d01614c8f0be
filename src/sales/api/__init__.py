"""Sales domain API package."""

from sales.api.routes import checkout_router, coupon_router, gift_router, register_error_handlers, sale_router

__all__ = ["sale_router", "checkout_router", "coupon_router", "gift_router", "register_error_handlers"]

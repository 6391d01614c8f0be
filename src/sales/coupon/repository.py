from sales.coupon.coupon import Coupon
from sales.domain import sales


@sales.repository(part_of=Coupon)
class CouponRepository:
    def find_by_code(self, code: str) -> Coupon | None:
        normalized = (code or "").strip().upper()
        if not normalized:
            return None
        return self._dao.query.filter(code=normalized).all().first

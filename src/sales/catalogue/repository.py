"""Catalogue accessor: product lookups and the conditional stock write."""

from sales.catalogue.product import Product, StockUpdate
from sales.domain import sales


@sales.repository(part_of=Product)
class ProductRepository:
    def decrement_stock(self, product_id: str, quantity: int) -> StockUpdate:
        """Take ``quantity`` units off the stored stock.

        The write only lands while the stored stock still covers the quantity;
        otherwise nothing is written and ``CONFLICT`` is returned.
        """
        product = self.get(product_id)
        if product.stock < quantity:
            return StockUpdate.CONFLICT

        product.decrement_stock(quantity)
        self.add(product)
        return StockUpdate.OK

    def for_channel(self, channel: str, search: str | None = None, limit: int = 50) -> list[Product]:
        """Active products of a sale channel ordered by code, optionally matching code or name."""
        products = self._dao.query.filter(is_active=True, sale_type=channel).order_by("code").all().items

        term = (search or "").strip().lower()
        if term:
            products = [p for p in products if term in p.code.lower() or term in p.name.lower()]

        return products[:limit]

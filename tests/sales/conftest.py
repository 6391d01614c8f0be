import os

import pytest
from protean.utils.globals import current_domain

from sales.catalogue.product import Product
from sales.payment import reset_gateway, set_gateway
from sales.payment.fake_adapter import FakeGateway
from sales.shipping import reset_shipping_quotes, set_shipping_quotes
from sales.shipping.fake_adapter import FakeShippingQuotes


@pytest.fixture(scope="session")
def _sales_domain(request):
    """Initialize the sales domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from sales.domain import sales

    sales.init()
    return sales


@pytest.fixture(scope="session", autouse=True)
def setup_db(_sales_domain):
    from sales.domain import sales
    from sales.utils.db import drop_db, setup_db

    setup_db(sales)

    yield

    drop_db(sales)


@pytest.fixture(autouse=True)
def run_around_tests(_sales_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _sales_domain.domain_context()
    ctx.push()

    yield

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


@pytest.fixture()
def shipping_quotes():
    quotes = FakeShippingQuotes()
    set_shipping_quotes(quotes)
    yield quotes
    reset_shipping_quotes()


@pytest.fixture()
def gateway():
    fake = FakeGateway()
    set_gateway(fake)
    yield fake
    reset_gateway()


@pytest.fixture()
def make_product():
    """Persist a product and return it."""

    def _make(code="P001", name="Vestido Floral", price=50.0, stock=10, sale_type="LIVE", is_active=True):
        product = Product(code=code, name=name, price=price, stock=stock, sale_type=sale_type, is_active=is_active)
        current_domain.repository_for(Product).add(product)
        return product

    return _make

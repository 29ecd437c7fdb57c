import os

import pytest


@pytest.fixture(scope="session")
def _marketplace_domain(request):
    """Initialize the marketplace domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from marketplace.domain import marketplace

    marketplace.init()
    return marketplace


@pytest.fixture(scope="session", autouse=True)
def setup_db(_marketplace_domain):
    from marketplace.utils.db import drop_db, setup_db

    setup_db(_marketplace_domain)

    yield

    drop_db(_marketplace_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_marketplace_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _marketplace_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------
@pytest.fixture()
def seed_account():
    """Persist an account and return it."""
    from marketplace.account.account import Account
    from protean.utils.globals import current_domain

    def _seed(role, name=None, enterprise_status=None, is_blocked=False):
        account = Account.register(
            name=name or f"{role} account",
            email=f"{role}@example.com",
            role=role,
            enterprise_status=enterprise_status,
            is_blocked=is_blocked,
        )
        current_domain.repository_for(Account).add(account)
        return account

    return _seed


@pytest.fixture()
def seed_product():
    """Persist a product with ``{warehouse_name: stock_level}`` warehouses."""
    from marketplace.product.product import Product
    from protean.utils.globals import current_domain

    def _seed(enterprise_id, name="Widget", price=10.0, warehouses=None, is_available=True):
        product = Product.create(
            name=name,
            price=price,
            enterprise_id=enterprise_id,
            warehouses=[
                {"warehouse_name": wh, "stock_level": level} for wh, level in (warehouses or {"W1": 5}).items()
            ],
            is_available=is_available,
        )
        current_domain.repository_for(Product).add(product)
        return product

    return _seed


@pytest.fixture()
def enterprise(seed_account):
    return seed_account("enterprise", name="Acme Tools", enterprise_status="approved")


@pytest.fixture()
def other_enterprise(seed_account):
    return seed_account("enterprise", name="Globex", enterprise_status="approved")


@pytest.fixture()
def buyer(seed_account):
    return seed_account("buyer", name="Bea Buyer")


@pytest.fixture()
def admin(seed_account):
    return seed_account("admin", name="Ada Admin")


@pytest.fixture()
def stock_of():
    """Current persisted stock level of one product warehouse."""
    from marketplace.product.product import Product
    from protean.utils.globals import current_domain

    def _stock(product_id, warehouse_name):
        product = current_domain.repository_for(Product).get(str(product_id))
        return product.warehouse_named(warehouse_name).stock_level

    return _stock

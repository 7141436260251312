import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api import admin_order_router, cart_router, checkout_router, order_router
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(order_router)
    app.include_router(admin_order_router)
    return TestClient(app)


@pytest.fixture()
def shopper():
    return {"X-User-Id": "user-001"}


@pytest.fixture()
def admin():
    return {"X-User-Id": "admin-001"}

# shopcore/api/__init__.py
from fastapi import FastAPI

from shopcore.api.routers import addresses, carts, health, orders, payment_methods, payments, variants


def create_app() -> FastAPI:
    app = FastAPI(
        title="Shop Core",
        version="1.0.0",
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(payments.router)
    app.include_router(addresses.router)
    app.include_router(payment_methods.router)
    app.include_router(variants.router)

    return app

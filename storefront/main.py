# storefront/main.py
from fastapi import FastAPI
import uvicorn

from storefront.api.routers import admin, carts, checkout, health, orders, products, users
from storefront.data.database import Base, engine
from storefront.utils.logging import get_logger

# modele musza byc zarejestrowane w Base.metadata przed create_all
from storefront.data import models  # noqa: F401

logger = get_logger(__name__)

logger.info(f"Initializing database, tables: {list(Base.metadata.tables.keys())}")
try:
    Base.metadata.create_all(bind=engine)
except Exception as e:
    logger.error(f"Failed to create tables: {e}")
    raise


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront",
        version="1.0.0",
    )

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(checkout.router)
    app.include_router(orders.router)
    app.include_router(admin.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)

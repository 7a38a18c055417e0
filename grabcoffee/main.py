# grabcoffee/main.py
from fastapi import FastAPI
import uvicorn

from grabcoffee.data.database import Base, engine
from grabcoffee.api.routers import health, menu, payments, orders
from grabcoffee.utils.logging import get_logger

# import wszystkich modeli przed create_all
import grabcoffee.data.models  # noqa: F401

logger = get_logger(__name__)


def init_db():
    logger.info(f"Initializing database, tables: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise


def create_app() -> FastAPI:
    init_db()

    app = FastAPI(
        title="Grab Coffee Payment API",
        version="1.0.0",
    )

    app.include_router(health.router)
    app.include_router(menu.router)
    app.include_router(payments.router)
    app.include_router(orders.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=3001)

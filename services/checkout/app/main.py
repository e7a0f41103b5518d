"""Same-day checkout service entrypoint."""

from fastapi import FastAPI

from services.checkout.app.config import CheckoutSettings
from services.checkout.app.db.init_db import init_db
from services.checkout.app.log import configure_logging
from services.checkout.app.routers.checkout import router as checkout_router
from services.checkout.app.routers.orders import router as orders_router

app = FastAPI(title="Same-Day Checkout API")

app.include_router(checkout_router)
app.include_router(orders_router)


@app.on_event("startup")
def _startup() -> None:
    settings = CheckoutSettings.from_env()
    configure_logging(settings)
    if settings.backend == "sql":
        init_db()


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}

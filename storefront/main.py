# storefront/main.py
# Точка входа FastAPI. Таблицы создаются в lifespan с повторными попытками,
# там же собираются очередь пост-коммитных задач и сервисы заказа.

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.db.session import engine, SessionLocal
from storefront.db.base import Base
from storefront.core.config import settings
from storefront.core.errors import StorefrontError
from storefront.api import auth, cart, orders, products, wishlist
from storefront.services.checkout import CheckoutEngine
from storefront.services.notifications import build_dispatcher
from storefront.services.restock import RestockWatcher
from storefront.services.tasks import PostCommitQueue

# Импорт моделей, чтобы SQLAlchemy видел их определения
import storefront.models.user
import storefront.models.product
import storefront.models.cart
import storefront.models.order
import storefront.models.wishlist

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def try_create_tables(retries: int = 5, delay: int = 2) -> bool:
    """
    Пытаемся создать таблицы с повторными попытками.
    Если БД недоступна, логируем ошибку и пробуем снова.

    Returns:
        True если таблицы созданы/существуют, False если все попытки исчерпаны
    """
    for attempt in range(1, retries + 1):
        try:
            logger.info(f"Creating tables ({attempt}/{retries})...")
            Base.metadata.create_all(bind=engine)
            logger.info("✅ Database tables created (or already exist).")
            return True
        except Exception as e:
            logger.warning(f"❌ Attempt {attempt}/{retries} failed to create tables: {e}")
            if attempt < retries:
                logger.info(f"⏳ Waiting {delay}s before retry...")
                time.sleep(delay)
    logger.error(f"❌ Could not create tables after {retries} retries.")
    return False


def configure_services(app: FastAPI, session_factory=SessionLocal, tasks: PostCommitQueue | None = None) -> None:
    """Собирает сервисы заказа и кладёт их в app.state."""
    tasks = tasks or PostCommitQueue(workers=settings.NOTIFY_WORKERS)
    dispatcher = build_dispatcher(settings)
    if not dispatcher.enabled:
        logger.warning("⚠️ SMTP_HOST is not set, notifications will only be logged")
    app.state.tasks = tasks
    app.state.checkout_engine = CheckoutEngine(session_factory, tasks, dispatcher)
    app.state.restock_watcher = RestockWatcher(session_factory, dispatcher)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения."""
    logger.info("🚀 Storefront starting up...")
    if not try_create_tables(retries=5, delay=2):
        if settings.ENVIRONMENT in ("production", "prod"):
            raise RuntimeError("Cannot start application: database tables creation failed")
        logger.error("⚠️ Failed to create database tables. Application may not work correctly.")

    if not hasattr(app.state, "tasks"):
        configure_services(app)
    app.state.tasks.start()

    yield

    logger.info("🛑 Storefront shutting down...")
    app.state.tasks.shutdown(wait=True)
    engine.dispose()
    logger.info("✅ Database connection closed")


app = FastAPI(
    title="Storefront API",
    description="Cart checkout, invoices and restock notifications",
    version="1.0.0",
    lifespan=lifespan
)

if settings.ENVIRONMENT == "development":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["https://yourdomain.com"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(products.router, prefix="/api/products", tags=["products"])
app.include_router(cart.router, prefix="/api/cart", tags=["cart"])
app.include_router(wishlist.router, prefix="/api/wishlist", tags=["wishlist"])
app.include_router(orders.router, prefix="/api/orders", tags=["orders"])


@app.get("/health", tags=["health"])
async def health():
    return {"status": "healthy", "version": "1.0.0", "notifications": bool(settings.SMTP_HOST)}


@app.exception_handler(StorefrontError)
async def storefront_exception_handler(request: Request, exc: StorefrontError):
    """Доменные ошибки: статус и сообщение без внутренних деталей."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Глобальный обработчик ошибок."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "message": "Internal server error",
            "detail": str(exc) if settings.ENVIRONMENT == "development" else "An error occurred",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower()
    )

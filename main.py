from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import BackgroundTasks, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from catalog import list_products
from database import OrderStore, open_order_store
from errors import OrderServiceError, OrderValidationError, StoreError
from notifier import EmailNotifier
from schemas import Message, Order, OrderCreated, OrderIn, Product
from settings import Settings, settings as default_settings

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=default_settings.LOG_LEVEL,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    opened = None
    if getattr(app.state, "store", None) is None:
        opened = app.state.store = await open_order_store(app.state.settings)
    logger.info("Order store in use: %s", app.state.store.kind)
    yield
    if opened is not None:
        await opened.close()


def get_store(request: Request) -> OrderStore:
    return request.app.state.store


def get_notifier(request: Request) -> EmailNotifier:
    return request.app.state.notifier


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[OrderStore] = None,
    notifier: Optional[EmailNotifier] = None,
) -> FastAPI:
    settings = settings or default_settings
    app = FastAPI(title="Anvi's Tea API", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.notifier = notifier or EmailNotifier(settings)

    # Storefront is served from its own origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": OrderValidationError.message})

    @app.exception_handler(OrderValidationError)
    async def invalid_order(request: Request, exc: OrderValidationError):
        return JSONResponse(status_code=400, content={"message": exc.message})

    @app.exception_handler(OrderServiceError)
    async def server_error(request: Request, exc: OrderServiceError):
        return JSONResponse(status_code=500, content={"message": exc.message})

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "Anvi's Tea backend is running"

    @app.get("/test")
    async def test(request: Request):
        store = request.app.state.store
        return {
            "backend": "✅ Running",
            "store": store.kind if store is not None else "❌ Not Initialized",
            "database_url": "✅ Set" if settings.MONGO_URL else "❌ Not Set",
            "email": "✅ Configured" if request.app.state.notifier.configured else "❌ Not Configured",
        }

    @app.get("/api/products", response_model=list[Product])
    async def products():
        return list_products()

    @app.post(
        "/api/orders",
        response_model=OrderCreated,
        responses={400: {"model": Message}, 500: {"model": Message}},
    )
    async def create_order(
        order: OrderIn,
        background_tasks: BackgroundTasks,
        store: OrderStore = Depends(get_store),
        notifier: EmailNotifier = Depends(get_notifier),
    ):
        if not order.is_complete():
            raise OrderValidationError()
        try:
            saved = await store.create(order)
        except StoreError as e:
            logger.exception("Error creating order")
            raise StoreError("Server error while creating order") from e

        # Email goes out after the response; its outcome is only logged
        background_tasks.add_task(notifier.notify, saved)
        return OrderCreated(orderId=saved.id)

    @app.get("/api/orders", response_model=list[Order], responses={500: {"model": Message}})
    async def list_orders(store: OrderStore = Depends(get_store)):
        try:
            return await store.list_all()
        except StoreError as e:
            logger.exception("Error fetching orders")
            raise StoreError("Server error while fetching orders") from e

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=default_settings.PORT)

import logging
import os
import time
from datetime import datetime
from typing import List

from fastapi import FastAPI, APIRouter, Depends, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import Session

from .db import get_session, init_db
from .errors import InvalidInputError, PersistenceError, ResourceNotFoundError
from .orders import ItemRequest, OrderService
from .products import ProductService
from .schemas import OrderCreate, OrderOut, ProductIn, ProductOut
from .stores import OrderStore, ProductStore

APP_NAME = "storefront"
LISTEN_PORT = int(os.getenv("LISTEN_PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Prefix for all API routes. Set API_PREFIX="" if a gateway strips it.
API_PREFIX = os.getenv("API_PREFIX", "/api").strip()
if API_PREFIX and not API_PREFIX.startswith("/"):
    API_PREFIX = "/" + API_PREFIX
API_PREFIX = API_PREFIX.rstrip("/")

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title=APP_NAME)
router = APIRouter(prefix=API_PREFIX)

# ---- Startup: ensure schema + tables exist (idempotent) ----
@app.on_event("startup")
def on_startup():
    init_db()

# ---- Prometheus metrics ----
REQS = Counter("http_requests_total", "Total HTTP requests", ["service", "path", "method", "status"])
LAT = Histogram("http_request_duration_seconds", "Request latency", ["service", "path", "method"])
ORDERS_CREATED = Counter("orders_created_total", "Orders created successfully")
ORDERS_FAILED = Counter("order_create_failures_total", "Order create failures", ["reason"])

@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    REQS.labels(APP_NAME, request.url.path, request.method, response.status_code).inc()
    LAT.labels(APP_NAME, request.url.path, request.method).observe(time.time() - start)
    return response

# ---- Error translation ----
def _is_place_order(request: Request) -> bool:
    return request.method == "POST" and request.url.path == f"{API_PREFIX}/orders"

@app.exception_handler(RequestValidationError)
async def request_validation_error(request: Request, exc: RequestValidationError):
    if _is_place_order(request):
        ORDERS_FAILED.labels(reason="invalid_input").inc()
    violations = [
        f"{'.'.join(str(p) for p in e['loc'][1:]) or e['loc'][0]}: {e['msg']}" for e in exc.errors()
    ]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": violations})

@app.exception_handler(InvalidInputError)
async def invalid_input(request: Request, exc: InvalidInputError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": exc.violations})

@app.exception_handler(ResourceNotFoundError)
async def not_found(request: Request, exc: ResourceNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

@app.exception_handler(PersistenceError)
async def persistence_failed(request: Request, exc: PersistenceError):
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)})

# ---- Wiring ----
def get_product_service(session: Session = Depends(get_session)) -> ProductService:
    return ProductService(ProductStore(session))

def get_order_service(session: Session = Depends(get_session)) -> OrderService:
    return OrderService(OrderStore(session), ProductStore(session))

@app.get("/health", response_class=PlainTextResponse)
def health():
    return "ok"

@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

# ---------- Products ----------
@router.get("/products", response_model=List[ProductOut])
def list_products(service: ProductService = Depends(get_product_service)):
    return service.get_all()

@router.post("/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductIn, service: ProductService = Depends(get_product_service)):
    return service.create(payload)

@router.get("/products/{pid}", response_model=ProductOut)
def get_product(pid: int, service: ProductService = Depends(get_product_service)):
    return service.get_by_id(pid)

@router.put("/products/{pid}", response_model=ProductOut)
def update_product(pid: int, payload: ProductIn, service: ProductService = Depends(get_product_service)):
    return service.update(pid, payload)

@router.delete("/products/{pid}", status_code=204)
def delete_product(pid: int, service: ProductService = Depends(get_product_service)):
    service.delete(pid)
    return Response(status_code=204)

# ---------- Orders ----------
@router.get("/orders", response_model=List[OrderOut])
def list_orders(service: OrderService = Depends(get_order_service)):
    return service.get_all()

# must be registered before /orders/{oid}
@router.get("/orders/byDateRange", response_model=List[OrderOut])
def list_orders_by_date_range(
    start_date: datetime = Query(alias="startDate"),
    end_date: datetime = Query(alias="endDate"),
    service: OrderService = Depends(get_order_service),
):
    return service.get_by_date_range(start_date, end_date)

@router.get("/orders/{oid}", response_model=OrderOut)
def get_order(oid: int, service: OrderService = Depends(get_order_service)):
    return service.get_by_id(oid)

@router.post("/orders", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def place_order(payload: OrderCreate, service: OrderService = Depends(get_order_service)):
    try:
        order = service.place_order(
            payload.buyer_email,
            [ItemRequest(product_id=it.product_id, quantity=it.quantity) for it in payload.items],
        )
    except InvalidInputError:
        ORDERS_FAILED.labels(reason="invalid_input").inc()
        raise
    except ResourceNotFoundError:
        ORDERS_FAILED.labels(reason="missing_product").inc()
        raise
    except PersistenceError:
        ORDERS_FAILED.labels(reason="persistence").inc()
        raise
    ORDERS_CREATED.inc()
    return order

app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=LISTEN_PORT)

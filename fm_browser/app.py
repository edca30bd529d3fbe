import logging
import time
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Optional

import httpx
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import Config
from .core.errors import FileMakerError
from .core.http import forward_to_filemaker
from .core.middleware import ALLOWED_METHODS, global_exception_handler, log_requests
from .core.validation import MAX_PAGE_SIZE, validate_business_key, validate_date_range, validate_record_id
from .models import PaginatedResult, Record, SalesSummary
from .services.dashboard import DASHBOARD_FETCH_LIMIT, summarize_sales
from .services.filemaker_service import FileMakerService, create_service
from .services.resources import ENTITY_FIELDS, ResourceAccessors

logger = logging.getLogger(__name__)

PROXY_METHODS = ["GET", "POST", "PATCH", "DELETE"]


def _detail_or_404(loader, record_id: str, kind: str) -> Record:
    try:
        record = loader(record_id)
    except FileMakerError as e:
        logger.error(f"Failed to fetch {kind} {record_id}: {e}")
        raise HTTPException(status_code=502, detail=f"Failed to fetch {kind}")
    if record is None:
        raise HTTPException(status_code=404, detail=f"{kind.capitalize()} not found: {record_id}")
    return record


def create_app(
    config: Optional[Config] = None,
    *,
    transport: Optional[httpx.BaseTransport] = None,
    proxy_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the FastAPI application.

    ``transport`` / ``proxy_transport`` replace the network layer of the
    Data API client and the dev proxy respectively.
    """
    config = config or Config()
    service: Optional[FileMakerService] = create_service(config, transport=transport) if config.has_host else None
    resources = ResourceAccessors(config, service)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        if service is None:
            logger.warning("FM_HOST is not set; serving built-in sample records")
        yield
        if service is not None:
            service.close()

    app = FastAPI(title="FileMaker Browser API", lifespan=lifespan)
    app.state.config = config
    app.state.service = service
    app.state.resources = resources

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins(),
        allow_credentials=True,
        allow_methods=[m.strip() for m in ALLOWED_METHODS.split(",")],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def _log_requests(request, call_next):
        return await log_requests(request, call_next)

    @app.exception_handler(Exception)
    async def _global_exception_handler(request, exc):
        return await global_exception_handler(request, exc)

    @app.get("/api/contacts", response_model=PaginatedResult)
    def list_contacts(
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
        search: str = Query(""),
    ):
        return resources.get_contacts(page, limit, search)

    @app.get("/api/contacts/{record_id}", response_model=Record)
    def contact_detail(record_id: str):
        validate_record_id(record_id)
        return _detail_or_404(resources.get_contact, record_id, "contact")

    @app.get("/api/products", response_model=PaginatedResult)
    def list_products(
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
        search: str = Query(""),
    ):
        return resources.get_products(page, limit, search)

    @app.get("/api/products/by-item/{item_no}", response_model=Record)
    def product_by_item_no(item_no: str):
        validate_business_key(item_no)
        product = resources.get_product_by_item_no(item_no)
        if product is None:
            raise HTTPException(status_code=404, detail=f"Product not found: {item_no}")
        return product

    @app.get("/api/products/{record_id}")
    def product_detail(record_id: str):
        """Product record together with its inventory lots."""
        validate_record_id(record_id)
        product = _detail_or_404(resources.get_product, record_id, "product")
        item_no = product.get("ItemNo")
        lots = resources.get_lots(str(item_no)) if item_no else []
        return {
            "product": product.model_dump(by_alias=True),
            "lots": [lot.model_dump(by_alias=True) for lot in lots],
        }

    @app.get("/api/sales", response_model=PaginatedResult)
    def list_sales(
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
        search: str = Query(""),
        start_date: Optional[date] = Query(None),
        end_date: Optional[date] = Query(None),
    ):
        validate_date_range(start_date, end_date)
        return resources.get_sales(page, limit, search, start_date, end_date)

    @app.get("/api/sales/{record_id}")
    def sale_detail(record_id: str):
        """Sale record together with its line items."""
        validate_record_id(record_id)
        sale = _detail_or_404(resources.get_sale, record_id, "sale")
        sales_key = sale.get("SalesKeyProducts")
        line_items = resources.get_line_items(str(sales_key)) if sales_key else []
        return {
            "sale": sale.model_dump(by_alias=True),
            "lineItems": [item.model_dump(by_alias=True) for item in line_items],
        }

    @app.get("/api/fields/{entity}")
    def entity_fields(entity: str):
        """Display columns for an entity's table."""
        fields = ENTITY_FIELDS.get(entity)
        if fields is None:
            raise HTTPException(status_code=404, detail=f"Unknown entity: {entity}")
        return {"entity": entity, "fields": list(fields)}

    @app.get("/api/dashboard", response_model=SalesSummary)
    def dashboard(
        start_date: Optional[date] = Query(None),
        end_date: Optional[date] = Query(None),
    ):
        today = date.today()
        start = start_date or today.replace(day=1)
        end = end_date or today
        validate_date_range(start, end)
        sales = resources.get_sales(1, DASHBOARD_FETCH_LIMIT, "", start, end)
        return summarize_sales(sales.data, start, end)

    if config.is_development:
        @app.api_route("/fmi/{path:path}", methods=PROXY_METHODS)
        async def filemaker_proxy(path: str, request: Request):
            """Forward Data API calls to the remote host during development."""
            authorization = request.headers.get("authorization", "")
            if not authorization and config.FM_PROXY_INJECT_AUTH and service is not None:
                try:
                    token = await run_in_threadpool(service.session.get_token)
                except FileMakerError as e:
                    logger.error(f"Proxy could not obtain a session token: {e}")
                    return JSONResponse(status_code=502, content={"error": "Session unavailable", "details": str(e)})
                authorization = f"Bearer {token}"

            status, data = await forward_to_filemaker(
                config,
                request.method,
                path,
                body=await request.body(),
                authorization=authorization,
                params=dict(request.query_params) or None,
                transport=proxy_transport,
            )
            return JSONResponse(status_code=status, content=data)

    @app.get("/health")
    def health_check():
        """Basic health and dependency checks for the API."""
        health_start_time = time.time()

        if service is None:
            return {
                "status": "healthy",
                "service": "filemaker-browser-api",
                "mode": "sample-data",
                "timestamp": datetime.now().isoformat(),
            }

        try:
            config.validate()
            service.session.get_token()
            health_duration = time.time() - health_start_time
            return {
                "status": "healthy",
                "service": "filemaker-browser-api",
                "mode": "filemaker",
                "timestamp": datetime.now().isoformat(),
                "response_time_ms": round(health_duration * 1000, 2),
            }
        except (ValueError, FileMakerError) as e:
            health_duration = time.time() - health_start_time
            logger.error(f"Health check failed: {str(e)} - Duration: {health_duration:.1f}s")
            return {
                "status": "unhealthy",
                "service": "filemaker-browser-api",
                "timestamp": datetime.now().isoformat(),
                "error": str(e),
                "response_time_ms": round(health_duration * 1000, 2),
            }

    @app.get("/")
    def root():
        """Return basic API information."""
        return {
            "service": "FileMaker Browser API",
            "version": "1.0",
            "endpoints": {
                "contacts": "/api/contacts",
                "products": "/api/products",
                "sales": "/api/sales",
                "dashboard": "/api/dashboard",
                "health": "/health",
            },
            "timestamp": datetime.now().isoformat(),
            "description": "Read-only browser for contacts, products and sales stored in FileMaker",
        }

    return app

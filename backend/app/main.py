import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from app.core.config import settings
from app.core.logging import setup_logging
from app.db.session import init_db

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("UniQverse API started (%s)", settings.ENV)
    yield


app = FastAPI(
    title="UniQverse API",
    version="1.0.0",
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Import routers after app creation to avoid circular imports
from app.api import (
    auth,
    wishlist,
    orders,
    users,
    categories,
    products,
    reviews,
    coupons,
    blog,
    events,
    vendor,
    pages,
    admin_categories,
    admin_products,
    admin_blog,
    admin_settings,
    admin_stats,
    admin_vendor_applications,
    audit_logs,
    suppliers,
)

# Wishlist and order routes live under /api/users, so they go before /api/users/{user_id}
app.include_router(auth.router)
app.include_router(wishlist.router)
app.include_router(orders.router)
app.include_router(users.router)
app.include_router(categories.router)
app.include_router(products.router)
app.include_router(reviews.router)
app.include_router(reviews.admin_router)
app.include_router(coupons.router)
app.include_router(coupons.admin_router)
app.include_router(blog.router)
app.include_router(events.router)
app.include_router(events.admin_router)
app.include_router(vendor.router)
app.include_router(admin_categories.router)
app.include_router(admin_products.router)
app.include_router(admin_blog.router)
app.include_router(admin_settings.router)
app.include_router(admin_stats.router)
app.include_router(admin_vendor_applications.router)
app.include_router(audit_logs.router)
app.include_router(suppliers.router)
app.include_router(pages.router)

# Uploaded product images
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount(settings.UPLOAD_URL_PREFIX, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.get("/")
def root():
    return {"status": "ok", "service": "uniqverse-api"}


@app.get("/api/health")
def health_check():
    return {
        "status": "healthy",
        "env": settings.ENV
    }

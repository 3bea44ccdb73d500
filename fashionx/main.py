# ============================================================================
# main.py - FashionX API Application
# ============================================================================

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from fashionx.core.config import settings
from fashionx.core.database import init_db
from fashionx.core.errors import register_exception_handlers
from fashionx.routers import admin, auth, generation, payments, plans, uploads, users

# Setup logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await init_db()
        logger.info("✅ Database initialized")
    except Exception as e:
        logger.error(f"❌ Database init failed: {e}")
    yield


app = FastAPI(
    title="FashionX API",
    description="AI fashion image and video generation",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_coop_headers(request: Request, call_next):
    response = await call_next(request)
    # Google sign-in popups need to reach the opener
    response.headers["Cross-Origin-Opener-Policy"] = "same-origin-allow-popups"
    return response


register_exception_handlers(app)

app.include_router(auth.router)
app.include_router(plans.router)
app.include_router(generation.router)
app.include_router(users.router)
app.include_router(users.terms_router)
app.include_router(uploads.router)
app.include_router(payments.router)
app.include_router(admin.router)

Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.get("/health")
async def health():
    return {"status": "healthy", "environment": settings.ENVIRONMENT}


@app.get("/")
async def root():
    return {"message": "FashionX API", "version": "1.0.0"}

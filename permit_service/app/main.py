import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.core.config import settings
from shared.core.database import Base, permit_engine
from shared.exception_handler import setup_exception_handlers
from shared.response_wrapper import JsonResponseMiddleware

from . import models  # noqa: F401  registers every table on Base.metadata
from .router import (
    business_associations_router,
    business_owners_router,
    certificate_router,
    verification_router,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title=settings.APP_NAME)

# Create all tables
Base.metadata.create_all(bind=permit_engine)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(JsonResponseMiddleware)

setup_exception_handlers(app)

# Include routers
app.include_router(business_owners_router.router)
app.include_router(business_associations_router.router)
app.include_router(verification_router.router)
app.include_router(certificate_router.router)


@app.get("/health")
def health_check():
    return {"status": "ok", "service": settings.APP_NAME}

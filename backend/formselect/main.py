import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from formselect.config import settings
from formselect.database import ensure_indexes
from formselect.logging_config import setup_logging
from formselect.routers.forms import router as forms_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    try:
        await ensure_indexes()
    except PyMongoError as e:
        logger.warning("Could not create indexes on %s: %s. Duplicate formIds are only caught by the pre-check.", settings.DB_NAME, e)
    logger.info("Forms API ready, Swagger UI at %s", settings.DOCS_URL)
    yield


app = FastAPI(
    title="Forms API (FastAPI + Mongo)",
    description="Store and retrieve form definitions by storage id or formId",
    version="1.0.0",
    docs_url=settings.DOCS_URL,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(forms_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Unparseable or wrongly typed bodies are client errors, same as missing fields
    return JSONResponse(status_code=400, content={"detail": "Invalid request body.", "errors": jsonable_encoder(exc.errors())})


@app.get("/health")
async def health():
    return {"status": "ok"}

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from deadline.api.routes import get, revalidate, search
from deadline.config import settings
from deadline.errors import DeadlineError
from deadline.services import logger as log_service

log_service.configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_service.log_event("startup", "Deadline API starting")
    yield


app = FastAPI(
    title="Deadline",
    description="Chronological news research and event tracking",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DeadlineError)
async def deadline_error_handler(request: Request, exc: DeadlineError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "details": str(exc) or exc.error},
    )


# Routes
app.include_router(get.router)
app.include_router(search.router)
app.include_router(revalidate.router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "deadline"}

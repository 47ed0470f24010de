"""
Punto de entrada de la aplicación FastAPI.
Configura logging, CORS, manejo de errores y monta los routers.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from patient_admin.api.router import api_router
from patient_admin.config import get_settings
from patient_admin.core.exceptions import (
    INTERNAL_ERROR_MESSAGE,
    ErrorKind,
    ServiceError,
    status_code_for,
)

settings = get_settings()
logger = logging.getLogger(__name__)


# ── Lifecycle ────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Eventos de inicio y cierre de la aplicación."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info(f"{settings.APP_NAME} iniciando en modo {settings.APP_ENV}")
    yield
    logger.info(f"{settings.APP_NAME} cerrando...")


# ── App ──────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    description="API de consulta de visitas de pacientes por hospital",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# ── CORS ─────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


# ── Exception Handlers ──────────────────────────────
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Errores de dominio: el status sale del tipo de error."""
    message = INTERNAL_ERROR_MESSAGE if exc.kind is ErrorKind.INTERNAL else exc.message
    return JSONResponse(
        status_code=status_code_for(exc.kind),
        content={"error": message},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Parámetros mal formados (UUID, enteros, fechas) se responden como 400."""
    messages = []
    for error in exc.errors():
        field = error.get("loc", ("",))[-1]
        messages.append(f"{field}: {error.get('msg', 'invalid value')}")
    return JSONResponse(
        status_code=status_code_for(ErrorKind.VALIDATION),
        content={"error": "; ".join(messages) or "Invalid request"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Captura excepciones no manejadas para evitar exponer detalles internos."""
    logger.exception(f"Excepción no manejada en {request.url.path}")
    return JSONResponse(
        status_code=status_code_for(ErrorKind.INTERNAL),
        content={"error": INTERNAL_ERROR_MESSAGE},
    )


# ── Routers ──────────────────────────────────────────
app.include_router(api_router, prefix=settings.API_PREFIX)


# ── Health Check ─────────────────────────────────────
@app.get("/health", tags=["Health"])
async def health_check():
    """Endpoint de health check para monitoreo."""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": "0.1.0",
        "environment": settings.APP_ENV,
    }

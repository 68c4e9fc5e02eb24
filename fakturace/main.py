import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fakturace.core.config import settings
from fakturace.core.errors import AppError
from fakturace.routers import (
    admin,
    ares,
    auth,
    clients,
    invoices,
    payment,
    reference,
    subscription,
    user,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "Auth", "description": "Registration, activation, sign-in and password reset."},
    {"name": "Clients", "description": "Customers the user invoices."},
    {"name": "Invoices", "description": "Invoices, their lifecycle, QR payments and PDFs."},
    {"name": "Reference", "description": "Due terms, payment types and units."},
    {"name": "Subscription", "description": "Plans and plan changes."},
    {"name": "User", "description": "Profile, plan usage and personal data."},
    {"name": "Payments", "description": "Payment gateway callbacks."},
    {"name": "ARES", "description": "Czech company register lookup."},
    {"name": "Admin", "description": "User and subscription administration."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Invoicing for Czech small businesses. Manage clients and invoices, "
        "track monthly quotas and subscription plans."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count", "Content-Disposition"],
)


def _error(status_code: int, message: str, error_code: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, "errorCode": error_code},
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.message, exc.error_code)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Neplatná data")
    return _error(400, f"{field}: {message}" if field else message, "VALIDATION_ERROR")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Došlo k neočekávané chybě")


app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(clients.router, prefix="/api/clients", tags=["Clients"])
app.include_router(invoices.router, prefix="/api/invoices", tags=["Invoices"])
app.include_router(reference.router, prefix="/api", tags=["Reference"])
app.include_router(subscription.router, prefix="/api/subscription", tags=["Subscription"])
app.include_router(user.router, prefix="/api/user", tags=["User"])
app.include_router(payment.router, prefix="/api/payment", tags=["Payments"])
app.include_router(ares.router, prefix="/api/ares", tags=["ARES"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }

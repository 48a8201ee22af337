import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from enquiry_api.core.config import settings
from enquiry_api.core.db import Base, engine
from enquiry_api.core.errors import EnquiryApiError
from enquiry_api.domains.enquiry.router import router as enquiry_router
from enquiry_api.domains.otp.router import router as otp_router
from enquiry_api.utils.mailer import smtp_missing_fields
from enquiry_api.utils.sms import twilio_missing_fields


logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(title=settings.app_name, version="1.0.0")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(EnquiryApiError)
async def _enquiry_api_error_handler(request: Request, exc: EnquiryApiError):
    return _error(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if settings.env == "dev":
        logger.debug("[400] path=%s errors=%s", request.url.path, errors)
    return _error(400, ", ".join(_describe(err) for err in errors) or "Invalid request")


def _describe(err: dict) -> str:
    field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
    return f"{field}: {err.get('msg')}" if field else str(err.get("msg"))


@app.exception_handler(StarletteHTTPException)
async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return _error(404, "Endpoint not found")
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(SQLAlchemyError)
async def _database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error(500, "Internal server error")


@app.exception_handler(Exception)
async def _unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Server error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error(500, "Internal server error")


origins = [o.strip() for o in settings.cors_allow_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins if origins else ["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def _log_requests(request: Request, call_next):
    started = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s -> %s (%.1fms)", request.method, request.url.path, status_code, elapsed_ms)


@app.on_event("startup")
def _startup() -> None:
    # No migrations yet: create missing tables on boot.
    Base.metadata.create_all(bind=engine)
    logger.info(
        "%s started env=%s twilio_missing=%s smtp_missing=%s",
        settings.app_name,
        settings.env,
        twilio_missing_fields(settings),
        smtp_missing_fields(settings),
    )


@app.get("/health")
def health() -> dict:
    return {
        "ok": True,
        "service": settings.app_name,
        "env": settings.env,
        "twilio_missing": twilio_missing_fields(settings),
        "smtp_missing": smtp_missing_fields(settings),
    }


@app.get("/api")
def api_index() -> dict:
    return {
        "message": settings.app_name,
        "endpoints": {
            "health": "GET /health",
            "sendOTP": "POST /api/enquiries/send-otp",
            "submitEnquiry": "POST /api/enquiries/submit",
            "getEnquiries": "GET /api/enquiries",
            "getEnquiry": "GET /api/enquiries/{id}",
            "updateEnquiry": "PUT /api/enquiries/{id}",
            "deleteEnquiry": "DELETE /api/enquiries/{id}",
        },
    }


app.include_router(otp_router, tags=["otp"])
app.include_router(enquiry_router, tags=["enquiries"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("enquiry_api.main:app", host="0.0.0.0", port=5000)

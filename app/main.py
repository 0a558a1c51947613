from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.core.config import settings
from app.core.firebase import init_firebase
from app.core.database import engine, Base
from app.core.billing import build_billing_client
from app.notifier.sender import build_notification_sender
from app.api.v1.router import api_router
from app import models  # noqa: F401  registers every table on Base.metadata
import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def get_version() -> str:
    """Read version from VERSION file, fallback to default if not found."""
    version_file = os.path.join(os.path.dirname(os.path.dirname(__file__)), "VERSION")
    try:
        if os.path.exists(version_file):
            with open(version_file, "r") as f:
                version = f.read().strip()
                if version:
                    return version
    except Exception as e:
        logger.warning(f"Could not read VERSION file: {e}")
    # Fallback to default version
    return "1.0.0"


# Initialize Firebase
init_firebase()

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Revuverse API",
    version=get_version(),
    debug=settings.debug,
    redirect_slashes=False,
)

# Provider clients are chosen once and shared through app.state
app.state.notification_sender = build_notification_sender(settings)
app.state.billing_client = build_billing_client(settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    invalid = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path"))
        invalid.append({"field": field, "message": error.get("msg")})
    fields = [item["field"] for item in invalid if item["field"]]
    logger.info(f"validation_exception_handler: {request.method} {request.url.path} - fields: {fields}")
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "message": f"Invalid or missing fields: {', '.join(fields)}" if fields else "Invalid request",
            "errors": invalid,
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"unhandled_exception_handler: {request.method} {request.url.path} - {exc}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Server error" if settings.is_production else str(exc)},
    )


# Include routers
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": app.version}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

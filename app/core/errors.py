from fastapi import HTTPException, status
from app.core.config import settings


def server_error(error: Exception, public_message: str = "Server error") -> HTTPException:
    """500 carrying the error text outside production only"""
    detail = public_message if settings.is_production else str(error)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)

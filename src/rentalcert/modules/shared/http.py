"""
HTTP helpers shared by the routers.
"""

import logging

from fastapi import HTTPException, status

from rentalcert.core.exceptions import ServiceError

logger = logging.getLogger(__name__)


def service_error_to_http(e: ServiceError) -> HTTPException:
    """Convert a service error to an HTTPException with a structured detail."""
    if e.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"{e.error_code}: {e.message}")
    return HTTPException(status_code=e.status_code, detail=e.to_dict())


def internal_error(e: Exception, context: str) -> HTTPException:
    logger.exception(f"Error {context}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )

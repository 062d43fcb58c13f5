"""DRF exception handler that renders domain errors."""
import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import DomainError

logger = logging.getLogger("simulator")


def domain_exception_handler(exc, context):
    """Map ``DomainError`` to its status code and storage failures to 503.

    Everything else goes through DRF's default handler.
    """
    if isinstance(exc, DomainError):
        return Response(exc.as_payload(), status=exc.status_code)

    if isinstance(exc, DatabaseError):
        view = context.get("view")
        logger.error(
            "Storage failure in %s",
            view.__class__.__name__ if view is not None else "unknown view",
            exc_info=exc,
        )
        return Response(
            {
                "detail": "The operation could not be completed. Please try again.",
                "code": "service_unavailable",
            },
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return exception_handler(exc, context)

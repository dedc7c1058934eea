"""
Application exceptions for GeoPulse.
Each carries the HTTP status the API answers with.
"""
from fastapi import status


class GeoPulseError(Exception):
    """Base error with an HTTP status and a user-facing message."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(GeoPulseError):
    """A required secret or endpoint is not configured."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class InputValidationError(GeoPulseError):
    """Request input rejected before any external call."""

    status_code = status.HTTP_400_BAD_REQUEST


class UpstreamServiceError(GeoPulseError):
    """A required call to the AI gateway or the weather provider failed."""

    status_code = status.HTTP_502_BAD_GATEWAY

"""
Shipyard Errors

Architectural Intent:
- Single taxonomy shared by the ledger, the HTTP facade and the API client
- Each error carries the HTTP status it maps to at the facade boundary
- Raised where the condition is detected, converted to an envelope only at the edge
"""

from typing import Optional


class ShipyardError(Exception):
    """Base class for all Shipyard errors."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(ShipyardError):
    """Unknown node id/name or deployment id."""

    status_code = 404


class ValidationError(ShipyardError):
    """Malformed request body or arguments."""

    status_code = 400


class ServerError(ShipyardError):
    """Unexpected failure reported by (or inside) the facade."""

    status_code = 500


class NetworkError(ShipyardError):
    """Client-side connection failure or timeout."""

    status_code = 503

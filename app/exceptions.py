"""
exceptions.py — Typed errors raised by the open-market services

Every error carries a machine-readable ``code`` and the HTTP status the
API maps it to, so callers catch by type and clients branch on code
instead of parsing messages.

    MarketError (base)
    +-- ValidationError     VALIDATION_ERROR   400  malformed or missing input
    +-- AuthorizationError  FORBIDDEN          403  actor may not act on the entity
    +-- NotFoundError       NOT_FOUND          404  referenced id absent
    +-- StateError          INVALID_STATE      409  operation illegal in current state
    +-- ConflictError       CONFLICT           409  concurrent acceptance detected
    +-- LedgerError         LEDGER_ERROR       502  blockchain gateway failed

Raised by: app/services/*
Handled by: app/main.py (market_error_handler)
"""


class MarketError(Exception):
    """Base class for all open-market domain errors."""

    code: str = "MARKET_ERROR"
    status_code: int = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(MarketError):
    code = "VALIDATION_ERROR"
    status_code = 400


class AuthorizationError(MarketError):
    code = "FORBIDDEN"
    status_code = 403


class NotFoundError(MarketError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} not found")


class StateError(MarketError):
    """Operation is not legal for the entity's current status."""

    code = "INVALID_STATE"
    status_code = 409

    def __init__(self, message: str, current_status: str | None = None):
        self.current_status = current_status
        super().__init__(message)


class ConflictError(MarketError):
    """Another actor changed the entity between read and write."""

    code = "CONFLICT"
    status_code = 409


class LedgerError(MarketError):
    code = "LEDGER_ERROR"
    status_code = 502

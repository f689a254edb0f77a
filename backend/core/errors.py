"""
Inventory error taxonomy and its HTTP mapping.

Business-rule errors (InsufficientStock, NotFound, UnknownReason,
InvalidBranch, InvalidMovement) are deterministic for a given input and are
never retried. StoreFailure means the persistence layer failed inside a unit
of work; nothing was committed and the caller may retry.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger("inventory.errors")


class InventoryError(Exception):
    code = "INVENTORY_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidMovement(InventoryError):
    code = "INVALID_MOVEMENT"
    status_code = status.HTTP_400_BAD_REQUEST


class InsufficientStock(InventoryError):
    code = "INSUFFICIENT_STOCK"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, available: int, requested: int):
        super().__init__(f"Insufficient stock. available: {available}, requested: {requested}")
        self.available = available
        self.requested = requested


class NotFound(InventoryError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class UnknownReason(InventoryError):
    code = "UNKNOWN_REASON"
    status_code = 422


class InvalidBranch(InventoryError):
    code = "INVALID_BRANCH"
    status_code = status.HTTP_404_NOT_FOUND


class StoreFailure(InventoryError):
    code = "STORE_FAILURE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ConstraintViolation(StoreFailure):
    """A uniqueness or check constraint rejected the write."""

    code = "CONSTRAINT_VIOLATION"
    status_code = status.HTTP_409_CONFLICT


async def inventory_error_handler(request: Request, exc: InventoryError) -> JSONResponse:
    if isinstance(exc, StoreFailure):
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    body = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, InsufficientStock):
        body["available"] = exc.available
        body["requested"] = exc.requested
    return JSONResponse(status_code=exc.status_code, content=body)


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InventoryError, inventory_error_handler)

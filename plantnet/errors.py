import logging

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PlantNetError(Exception):
    status_code = 400
    message = "Request failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class Unauthorized(PlantNetError):
    status_code = 401
    message = "Unauthorized Access!"


class NotFound(PlantNetError):
    status_code = 404
    message = "Not found"


class PaymentNotCompleted(PlantNetError):
    status_code = 400
    message = "Payment has not been completed"


class OrdersNotFound(PlantNetError):
    status_code = 404
    message = "No orders found for this checkout session"


class CancellationForbidden(PlantNetError):
    status_code = 409
    message = "Cannot cancel once the product is delivered!"


class InsufficientStock(PlantNetError):
    status_code = 409
    message = "Not enough plants in stock"


class GatewayError(PlantNetError):
    status_code = 502
    message = "Payment gateway error"


async def plantnet_error_handler(request: Request, exc: PlantNetError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PlantNetError, plantnet_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

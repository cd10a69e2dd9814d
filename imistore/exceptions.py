"""Error taxonomy shared by the catalog and payments apps.

Each error carries the HTTP status it maps to; ``ApiErrorMiddleware``
renders them as ``{"message": ..., "errors": ...}``.
"""


class ShopError(Exception):
    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message=None, errors=None):
        self.message = message or self.default_message
        self.errors = errors or {}
        super().__init__(self.message)

    def as_dict(self) -> dict:
        body = {"message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(ShopError):
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(ShopError):
    status_code = 404
    default_message = "Not found"


class InsufficientStockError(ShopError):
    status_code = 400
    default_message = "Insufficient stock"


class HashMismatchError(ShopError):
    status_code = 400
    default_message = "Payment verification failed - hash mismatch"


class GatewayUnavailableError(ShopError):
    status_code = 502
    default_message = "Payment gateway unavailable"


class ConfigurationError(ShopError):
    status_code = 500
    default_message = "Payment gateway is not configured"

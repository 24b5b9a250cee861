class OrderServiceError(Exception):
    """Base class for errors raised by the order service."""

    message = "Server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class OrderValidationError(OrderServiceError):
    message = "Invalid order data"


class StoreError(OrderServiceError):
    """The order store could not complete a read or write."""

    message = "Order store unavailable"


class NotificationError(OrderServiceError):
    message = "Could not send order notification"


class StartupConnectivityError(OrderServiceError):
    message = "Could not connect to MongoDB"

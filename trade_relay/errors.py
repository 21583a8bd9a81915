"""
Error taxonomy for the trade relay.

Order store errors are raised synchronously to the command router, which
turns them into chat replies. Venue errors never change stored state; the
order monitor logs them and retries on the next cycle.
"""


class RelayError(Exception):
    """Base class for all trade relay errors."""


class ConfigError(RelayError, ValueError):
    """Missing or malformed configuration."""


class ValidationError(RelayError):
    """Malformed order parameters. The order is never stored."""


class NotFoundError(RelayError):
    """An order id that does not exist for the given owner."""

    def __init__(self, owner: str, order_id: int):
        self.owner = owner
        self.order_id = order_id
        super().__init__(f"Order #{order_id} not found")


class InvalidStateError(RelayError):
    """Operation attempted on an order that is no longer active."""

    def __init__(self, order_id: int, status: str, operation: str):
        self.order_id = order_id
        self.status = status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} order #{order_id} - status: {status}"
        )


class AdapterUnavailable(RelayError):
    """Transient venue or network failure. Recoverable on the next cycle."""

    def __init__(self, platform: str, message: str):
        self.platform = platform
        super().__init__(f"{platform}: {message}")

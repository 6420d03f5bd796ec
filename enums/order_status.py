from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"        # Submitted, not yet picked up by the kitchen
    PREPARING = "preparing"    # Kitchen is working on it
    READY = "ready"            # Ready for hand-over / dispatch
    DELIVERED = "delivered"    # Handed over to the customer (terminal)
    CANCELLED = "cancelled"    # Cancelled by staff (terminal)

    @classmethod
    def from_string(cls, value: str) -> 'OrderStatus':
        """Case-insensitive lookup, e.g. 'Ready' -> OrderStatus.READY."""
        normalized = value.strip().lower()
        for status in cls:
            if status.value == normalized:
                return status
        valid = ", ".join(status.value for status in cls)
        raise ValueError(f"Unknown order status '{value}'. Valid values: {valid}")

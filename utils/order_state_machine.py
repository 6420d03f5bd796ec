"""
Order State Machine describing the nominal order status flow.

pending -> preparing -> ready -> delivered, with cancelled reachable from any
non-terminal status. delivered and cancelled are final.

The machine is advisory: staff may set any status (operator override), so
transitions outside the nominal flow are logged, never rejected.
"""

import logging
from typing import Dict, List, Set

from enums.order_status import OrderStatus

logger = logging.getLogger(__name__)


class OrderStatusTransition:
    """Represents a nominal status transition with metadata"""

    def __init__(self, from_status: OrderStatus, to_status: OrderStatus, description: str = ""):
        self.from_status = from_status
        self.to_status = to_status
        self.description = description

    def __repr__(self):
        return f"{self.from_status.value} -> {self.to_status.value}"


class OrderStateMachine:
    """
    Nominal transition table for order statuses.

    Nominal transitions:
    - PENDING -> PREPARING (kitchen picked the order up)
    - PREPARING -> READY (food is ready)
    - READY -> DELIVERED (handed over)
    - PENDING/PREPARING/READY -> CANCELLED

    Final statuses: DELIVERED, CANCELLED
    """

    VALID_TRANSITIONS: List[OrderStatusTransition] = [
        OrderStatusTransition(OrderStatus.PENDING, OrderStatus.PREPARING, "Kitchen started preparing the order"),
        OrderStatusTransition(OrderStatus.PREPARING, OrderStatus.READY, "Order is ready"),
        OrderStatusTransition(OrderStatus.READY, OrderStatus.DELIVERED, "Order delivered to the customer"),
        OrderStatusTransition(OrderStatus.PENDING, OrderStatus.CANCELLED, "Order cancelled before preparation"),
        OrderStatusTransition(OrderStatus.PREPARING, OrderStatus.CANCELLED, "Order cancelled during preparation"),
        OrderStatusTransition(OrderStatus.READY, OrderStatus.CANCELLED, "Order cancelled before hand-over"),
    ]

    FINAL_STATUSES: Set[OrderStatus] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

    # Build transition map for fast lookup
    _transition_map: Dict[OrderStatus, Set[OrderStatus]] = {}
    _transition_descriptions: Dict[tuple, str] = {}

    @classmethod
    def _build_transition_map(cls):
        """Build internal transition maps"""
        if cls._transition_map:
            return  # Already built

        for transition in cls.VALID_TRANSITIONS:
            cls._transition_map.setdefault(transition.from_status, set()).add(transition.to_status)
            cls._transition_descriptions[(transition.from_status, transition.to_status)] = transition.description

    @classmethod
    def is_nominal_transition(cls, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        """
        Check if a status transition follows the nominal flow.

        Staying in the same status counts as nominal (no-op).
        """
        cls._build_transition_map()
        if from_status == to_status:
            return True
        return to_status in cls._transition_map.get(from_status, set())

    @classmethod
    def get_nominal_transitions(cls, from_status: OrderStatus) -> List[OrderStatus]:
        """Next statuses along the nominal flow, in enum order (for staff dropdown hints)."""
        cls._build_transition_map()
        destinations = cls._transition_map.get(from_status, set())
        return [status for status in OrderStatus if status in destinations]

    @classmethod
    def get_transition_description(cls, from_status: OrderStatus, to_status: OrderStatus) -> str:
        cls._build_transition_map()
        return cls._transition_descriptions.get(
            (from_status, to_status),
            f"Operator override from {from_status.value} to {to_status.value}"
        )

    @classmethod
    def is_final_status(cls, status: OrderStatus) -> bool:
        return status in cls.FINAL_STATUSES

    @classmethod
    def log_transition(cls, order_id: str, from_status: OrderStatus, to_status: OrderStatus,
                       staff_id: str | None = None) -> bool:
        """
        Write the audit log line for a status change.

        Returns:
            True if the change followed the nominal flow, False for an override
        """
        nominal = cls.is_nominal_transition(from_status, to_status)
        description = cls.get_transition_description(from_status, to_status)
        performer = f"staff {staff_id}" if staff_id else "system"

        if nominal:
            logger.info(f"ORDER_STATUS_TRANSITION: Order {order_id} {from_status.value} -> {to_status.value} by {performer}: {description}")
        else:
            logger.warning(f"ORDER_STATUS_OVERRIDE: Order {order_id} {from_status.value} -> {to_status.value} by {performer}: {description}")
        return nominal

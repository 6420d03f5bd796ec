from enum import Enum


class CheckoutPhase(str, Enum):
    ACTIVE = "ACTIVE"          # Sequencer is open, rendering `step`
    CANCELLED = "CANCELLED"    # Closed via back() on the first step
    COMPLETED = "COMPLETED"    # Order submitted, receipt available

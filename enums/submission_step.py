from enum import Enum


class SubmissionStep(str, Enum):
    """Write steps of an order submission, used to report where it failed."""
    VALIDATE = "validate"
    ORDER_HEADER = "order_header"
    ORDER_LINES = "order_lines"
    ORDER_LINE_ADDONS = "order_line_addons"

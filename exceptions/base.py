"""
Root of the order pipeline exception hierarchy.
"""


class OrderPipelineException(Exception):
    """
    Raised by services for any failure the caller is expected to handle
    (usually by showing a destructive toast).

    Attributes:
        message: text safe to show to the customer or staff member
        details: ids, steps and states for the log line
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        context = ''.join(f", {key}={value}" for key, value in self.details.items())
        return f"{type(self).__name__}('{self.message}'{context})"

from enum import IntEnum


class CheckoutStep(IntEnum):
    """
    Steps of the checkout flow, in order.

    The integer value is the step index so that next/back are +1/-1.
    """
    DELIVERY_INFO = 0
    REVIEW = 1
    PAYMENT = 2

    @classmethod
    def first(cls) -> 'CheckoutStep':
        return cls.DELIVERY_INFO

    @classmethod
    def last(cls) -> 'CheckoutStep':
        return cls.PAYMENT

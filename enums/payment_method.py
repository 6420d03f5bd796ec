from enum import Enum


class PaymentMethod(str, Enum):
    # The only fulfillment method: the customer pays when the order arrives
    PAY_ON_DELIVERY = "pay_on_delivery"

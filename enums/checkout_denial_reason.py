from enum import Enum


class CheckoutDenialReason(str, Enum):
    LOGIN_REQUIRED = "LOGIN_REQUIRED"
    CART_EMPTY = "CART_EMPTY"

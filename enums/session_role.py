from enum import Enum


class SessionRole(str, Enum):
    CUSTOMER = "customer"
    STAFF = "staff"

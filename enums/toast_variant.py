from enum import Enum


class ToastVariant(str, Enum):
    DEFAULT = "default"
    SUCCESS = "success"
    DESTRUCTIVE = "destructive"

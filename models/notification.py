from pydantic import BaseModel

from enums.toast_variant import ToastVariant


class ToastDTO(BaseModel):
    title: str
    description: str = ""
    variant: ToastVariant = ToastVariant.DEFAULT

    @classmethod
    def success(cls, title: str, description: str = "") -> 'ToastDTO':
        return cls(title=title, description=description, variant=ToastVariant.SUCCESS)

    @classmethod
    def destructive(cls, title: str, description: str = "") -> 'ToastDTO':
        return cls(title=title, description=description, variant=ToastVariant.DESTRUCTIVE)

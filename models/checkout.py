from pydantic import BaseModel, ConfigDict, Field

from enums.checkout_phase import CheckoutPhase
from enums.checkout_step import CheckoutStep
from enums.payment_method import PaymentMethod
from models.order import OrderReceiptDTO


class DeliveryInfoDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str = ""
    phone: str = ""
    notes: str = ""

    def missing_fields(self) -> list[str]:
        missing = []
        if not self.address.strip():
            missing.append("address")
        if not self.phone.strip():
            missing.append("phone")
        return missing


class CheckoutState(BaseModel):
    """
    Immutable value of the checkout flow.

    Every step renders from this one value (plus the cart), so no step can
    hold a copy of the delivery fields that drifts from another step.
    Transitions live in services.checkout.CheckoutSequencer and always
    return a new CheckoutState.
    """
    model_config = ConfigDict(frozen=True)

    step: CheckoutStep = CheckoutStep.DELIVERY_INFO
    phase: CheckoutPhase = CheckoutPhase.ACTIVE
    delivery_info: DeliveryInfoDTO = Field(default_factory=DeliveryInfoDTO)
    payment_method: PaymentMethod = PaymentMethod.PAY_ON_DELIVERY
    receipt: OrderReceiptDTO | None = None

    @property
    def is_active(self) -> bool:
        return self.phase == CheckoutPhase.ACTIVE

from enum import Enum


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    EWALLET = "ewallet"
    CHECK = "check"

    @property
    def requires_reference(self) -> bool:
        """Card and bank transfer payments must carry a terminal/transfer reference."""
        return self in (PaymentMethod.CARD, PaymentMethod.BANK_TRANSFER)

    @property
    def accepts_tender(self) -> bool:
        """Only cash payments hand out change."""
        return self is PaymentMethod.CASH

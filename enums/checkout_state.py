from enum import Enum


class CheckoutState(str, Enum):
    ITEM_ENTRY = "ITEM_ENTRY"                     # Scanning/adding items
    PAYMENT_IN_PROGRESS = "PAYMENT_IN_PROGRESS"   # Amount due fixed, waiting for payment
    COMPLETED = "COMPLETED"                       # Paid (terminal for the sale, resets to ITEM_ENTRY)
    CANCELLED = "CANCELLED"                       # Cancelled/declined (terminal for the sale, resets to ITEM_ENTRY)

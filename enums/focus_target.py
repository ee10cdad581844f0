from enum import Enum


class FocusTarget(str, Enum):
    SEARCH = "search"
    CUSTOMER = "customer"
    CART = "cart"
    CHECKOUT = "checkout"
    PAYMENT = "payment"

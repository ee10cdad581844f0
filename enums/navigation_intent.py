from enum import Enum


class NavigationIntent(str, Enum):
    NEXT = "next"                       # Tab
    PREVIOUS = "previous"               # Shift+Tab
    FOCUS_SEARCH = "focus_search"       # F2
    FOCUS_CUSTOMER = "focus_customer"   # F3
    FOCUS_CART = "focus_cart"
    FOCUS_CHECKOUT = "focus_checkout"   # F4
    ESCAPE = "escape"

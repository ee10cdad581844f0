from enum import Enum


class DiscountType(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"

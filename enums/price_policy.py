from enum import Enum


class PricePolicy(str, Enum):
    """
    How a cart line's unit price reacts to a fresh stock lookup.

    SNAPSHOT keeps the price captured when the product was first added.
    REFRESH re-prices the line from every successful lookup (add/update).
    """

    SNAPSHOT = "SNAPSHOT"
    REFRESH = "REFRESH"

    @classmethod
    def from_string(cls, value: str) -> 'PricePolicy':
        """
        Convert string to PricePolicy enum.

        Raises:
            ValueError: If value is not a valid policy
        """
        normalized = (value or "").strip().upper()
        for policy in cls:
            if policy.value == normalized:
                return policy

        valid = [p.value for p in cls]
        raise ValueError(f"Invalid price policy '{value}'. Valid policies: {', '.join(valid)}")

import logging
from typing import Callable

from enums.checkout_state import CheckoutState
from enums.focus_target import FocusTarget
from enums.navigation_intent import NavigationIntent

logger = logging.getLogger(__name__)

FOCUS_ORDER = [FocusTarget.SEARCH, FocusTarget.CUSTOMER, FocusTarget.CART, FocusTarget.CHECKOUT]

DIRECT_INTENTS = {
    NavigationIntent.FOCUS_SEARCH: FocusTarget.SEARCH,
    NavigationIntent.FOCUS_CUSTOMER: FocusTarget.CUSTOMER,
    NavigationIntent.FOCUS_CART: FocusTarget.CART,
    NavigationIntent.FOCUS_CHECKOUT: FocusTarget.CHECKOUT,
}


def resolve_focus(current: FocusTarget, intent: NavigationIntent,
                  state: CheckoutState, item_count: int) -> FocusTarget:
    """
    Pure focus transition: where does intent move focus from current?

    While a payment is in progress focus is pinned to PAYMENT; ESCAPE goes
    back to the cart without cancelling anything. CHECKOUT is never focused
    for an empty cart.
    """
    if state == CheckoutState.PAYMENT_IN_PROGRESS:
        if intent == NavigationIntent.ESCAPE:
            return FocusTarget.CART
        return FocusTarget.PAYMENT

    if intent == NavigationIntent.ESCAPE:
        return FocusTarget.SEARCH

    available = [target for target in FOCUS_ORDER
                 if target != FocusTarget.CHECKOUT or item_count > 0]

    if intent in DIRECT_INTENTS:
        target = DIRECT_INTENTS[intent]
        if target in available:
            return target
        logger.debug(f"Focus {target.value} refused for empty cart")
        return current if current in available else FocusTarget.SEARCH

    if current in available:
        index = available.index(current)
    elif current == FocusTarget.CHECKOUT:
        # Cart emptied while checkout was focused
        index = available.index(FocusTarget.CART)
    else:
        index = -1 if intent == NavigationIntent.NEXT else 0

    step = 1 if intent == NavigationIntent.NEXT else -1
    return available[(index + step) % len(available)]


class NavigationCoordinator:
    """
    Keyboard focus for one session (F2 search, F3 customer, F4 checkout, Tab order, Escape).

    Gets read-only callables for the checkout state and the item count and
    never touches cart data. Checkout transitions arrive through
    on_checkout_state_change(); reading current never changes focus.
    """

    def __init__(self, state_provider: Callable[[], CheckoutState], item_count_provider: Callable[[], int]):
        self._state_provider = state_provider
        self._item_count_provider = item_count_provider
        self._current = FocusTarget.SEARCH
        self._left_payment = False

    @classmethod
    def for_session(cls, session) -> 'NavigationCoordinator':
        navigation = cls(
            state_provider=lambda: session.checkout.state,
            item_count_provider=lambda: session.cart.item_count
        )
        session.checkout.add_state_listener(navigation.on_checkout_state_change)
        return navigation

    @property
    def current(self) -> FocusTarget:
        """Effective focus for the current checkout state and item count."""
        if self._state_provider() == CheckoutState.PAYMENT_IN_PROGRESS:
            return FocusTarget.CART if self._left_payment else FocusTarget.PAYMENT
        if self._current == FocusTarget.PAYMENT:
            return FocusTarget.SEARCH
        if self._current == FocusTarget.CHECKOUT and self._item_count_provider() == 0:
            return FocusTarget.CART
        return self._current

    def on_checkout_state_change(self, state: CheckoutState) -> None:
        if state == CheckoutState.PAYMENT_IN_PROGRESS:
            self._current = FocusTarget.PAYMENT
            self._left_payment = False
        elif state == CheckoutState.ITEM_ENTRY:
            # Sale settled or cancelled: start the next one at the search box
            self._current = FocusTarget.SEARCH
            self._left_payment = False

    def handle(self, intent: NavigationIntent) -> FocusTarget:
        state = self._state_provider()
        self._current = resolve_focus(self.current, intent, state, self._item_count_provider())
        self._left_payment = (state == CheckoutState.PAYMENT_IN_PROGRESS
                              and self._current == FocusTarget.CART)
        return self._current

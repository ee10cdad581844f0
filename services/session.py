import logging
import uuid
from datetime import datetime, timedelta, timezone

import config
from enums.checkout_state import CheckoutState
from exceptions.session import (
    SessionNotFoundException,
    CannotCloseLastSessionException,
    SessionBusyException
)
from models.session import SessionSummaryDTO
from services.cart import CartStore
from services.checkout import Checkout
from services.navigation import NavigationCoordinator
from services.payment import PaymentService
from services.stock_lookup import StockLookupService

logger = logging.getLogger(__name__)

MAX_DISPLAY_NAME_LENGTH = 20


def _now() -> datetime:
    return datetime.now(timezone.utc)


def generate_session_name(session_number: int, customer_name: str | None = None) -> str:
    """
    Tab label for a new session.

    Examples:
        >>> generate_session_name(2)
        'Session 2'
        >>> generate_session_name(2, "Bengkel Maju Jaya Motor Sport")
        'Bengkel Maju Jaya...'
    """
    if customer_name:
        if len(customer_name) > MAX_DISPLAY_NAME_LENGTH:
            return f"{customer_name[:MAX_DISPLAY_NAME_LENGTH - 3]}..."
        return customer_name
    return f"Session {session_number}"


class Session:
    """One checkout lane: its own cart, checkout state and customer."""

    def __init__(self, session_id: str, display_name: str, creation_order: int,
                 stock_lookup: StockLookupService, payment_service: PaymentService,
                 customer_id: str | None = None, customer_name: str | None = None):
        self.id = session_id
        self.display_name = display_name
        self.creation_order = creation_order
        self.customer_id = customer_id
        self.customer_name = customer_name
        self.created_at = _now()
        self.last_active = self.created_at

        self.cart = CartStore(session_id, stock_lookup)
        self.checkout = Checkout(session_id, self.cart, payment_service,
                                 customer_info=lambda: (self.customer_id, self.customer_name))
        self.navigation = NavigationCoordinator.for_session(self)

    @property
    def state(self) -> CheckoutState:
        return self.checkout.state

    def touch(self) -> None:
        self.last_active = _now()

    def summary(self, is_active: bool) -> SessionSummaryDTO:
        return SessionSummaryDTO(
            id=self.id,
            display_name=self.display_name,
            customer_id=self.customer_id,
            customer_name=self.customer_name,
            created_at=self.created_at,
            last_active=self.last_active,
            is_active=is_active,
            state=self.state,
            item_count=self.cart.item_count,
            total=self.cart.total
        )


class SessionRegistry:
    """
    Owns every open session and tracks which one is active.

    There is always at least one session and active_session_id always
    resolves. The registry starts with a single "Default Session".
    """

    def __init__(self, stock_lookup: StockLookupService, payment_service: PaymentService,
                 max_sessions: int | None = None):
        self._stock_lookup = stock_lookup
        self._payment_service = payment_service
        self.max_sessions = max_sessions or config.MAX_SESSIONS
        self._sessions: dict[str, Session] = {}
        self._creation_counter = 0

        default_session = self._new_session(config.DEFAULT_SESSION_NAME)
        self.active_session_id = default_session.id

    def _new_session(self, display_name: str, customer_id: str | None = None,
                     customer_name: str | None = None) -> Session:
        self._creation_counter += 1
        session = Session(
            session_id=uuid.uuid4().hex,
            display_name=display_name,
            creation_order=self._creation_counter,
            stock_lookup=self._stock_lookup,
            payment_service=self._payment_service,
            customer_id=customer_id,
            customer_name=customer_name
        )
        self._sessions[session.id] = session
        logger.info(f"Session {session.id} created ('{display_name}')")
        return session

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_session(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            logger.error(f"Session {session_id} not found")
            raise SessionNotFoundException(session_id)
        return session

    @property
    def active_session(self) -> Session:
        return self._sessions[self.active_session_id]

    def list_sessions(self) -> list[Session]:
        """Sessions in creation order."""
        return sorted(self._sessions.values(), key=lambda s: s.creation_order)

    def summaries(self) -> list[SessionSummaryDTO]:
        return [session.summary(session.id == self.active_session_id) for session in self.list_sessions()]

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def is_max_sessions_reached(self) -> bool:
        """Advisory only: the UI may hide the "new session" button, creation still succeeds."""
        return len(self._sessions) >= self.max_sessions

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_session(self, display_name: str | None = None, customer_id: str | None = None,
                       customer_name: str | None = None) -> str:
        """
        Open a new session with an empty cart and make it active.

        Returns:
            The new session id
        """
        if self.is_max_sessions_reached():
            logger.warning(f"Opening session beyond the advisory limit of {self.max_sessions}")

        name = display_name or generate_session_name(len(self._sessions) + 1, customer_name)
        session = self._new_session(name, customer_id, customer_name)
        self.active_session_id = session.id
        return session.id

    def switch_active(self, session_id: str) -> Session:
        session = self.get_session(session_id)
        self.active_session_id = session_id
        session.touch()
        return session

    def close_session(self, session_id: str) -> None:
        """
        Close a session and discard its cart.

        Raises:
            SessionNotFoundException: unknown session id
            CannotCloseLastSessionException: only one session remains
            SessionBusyException: a payment submission is still outstanding
        """
        session = self.get_session(session_id)
        if len(self._sessions) <= 1:
            logger.error(f"Refusing to close last session {session_id}")
            raise CannotCloseLastSessionException(session_id)
        if session.checkout.payment_outstanding:
            raise SessionBusyException(session_id, "payment submission outstanding")

        session.cart.close()
        del self._sessions[session_id]
        logger.info(f"Session {session_id} closed ('{session.display_name}')")

        if self.active_session_id == session_id:
            self.active_session_id = self.list_sessions()[0].id
            self.active_session.touch()

    def rename_session(self, session_id: str, display_name: str) -> Session:
        session = self.get_session(session_id)
        display_name = (display_name or "").strip()
        if display_name:
            session.display_name = display_name
        return session

    def set_customer(self, session_id: str, customer_id: str | None, customer_name: str | None) -> Session:
        """Attach a customer; the tab is relabelled after the customer."""
        session = self.get_session(session_id)
        session.customer_id = customer_id
        session.customer_name = customer_name
        if customer_name:
            session.display_name = generate_session_name(session.creation_order, customer_name)
        session.touch()
        return session

    def clear_customer(self, session_id: str) -> Session:
        session = self.get_session(session_id)
        session.customer_id = None
        session.customer_name = None
        session.touch()
        return session

    def cleanup_idle_sessions(self, max_idle: timedelta | None = None) -> list[str]:
        """
        Drop sessions nobody is using.

        A session is removed when it is not active, has an empty cart, is in
        item entry and has not been touched for max_idle. At least one
        session always survives.

        Returns:
            Ids of the removed sessions
        """
        max_idle = max_idle or timedelta(minutes=config.SESSION_IDLE_MINUTES)
        cutoff = _now() - max_idle

        removed = []
        for session in self.list_sessions():
            if len(self._sessions) <= 1:
                break
            if (session.id == self.active_session_id
                    or not session.cart.is_empty
                    or session.state != CheckoutState.ITEM_ENTRY
                    or session.last_active > cutoff):
                continue
            session.cart.close()
            del self._sessions[session.id]
            removed.append(session.id)

        if removed:
            logger.info(f"Cleaned up {len(removed)} idle session(s)")
        return removed

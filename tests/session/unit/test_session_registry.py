"""
Unit Tests: SessionRegistry

Tests for services/session.py covering:
- default session and creation naming
- switching, closing and the "never empty" invariant
- customer assignment and renaming
- idle session cleanup
"""

import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest

from enums.checkout_state import CheckoutState
from enums.payment_method import PaymentMethod
from exceptions import (
    SessionNotFoundException,
    CannotCloseLastSessionException,
    SessionBusyException,
    OperationAbandonedException,
)
from services.session import SessionRegistry, generate_session_name


class TestDefaultSession:

    def test_registry_starts_with_default_session(self, registry):
        sessions = registry.list_sessions()

        assert len(sessions) == 1
        assert sessions[0].display_name == "Default Session"
        assert registry.active_session_id == sessions[0].id
        assert registry.active_session.state == CheckoutState.ITEM_ENTRY
        assert registry.active_session.cart.is_empty


class TestCreateSession:

    def test_create_session_becomes_active(self, registry):
        session_id = registry.create_session()

        assert registry.active_session_id == session_id
        assert registry.get_session(session_id).display_name == "Session 2"
        assert registry.get_session(session_id).cart.is_empty

    def test_create_session_named_after_customer(self, registry):
        session_id = registry.create_session(customer_id="C-17", customer_name="Bengkel Maju Jaya Motor Sport")

        session = registry.get_session(session_id)
        assert session.display_name == "Bengkel Maju Jaya..."
        assert session.customer_id == "C-17"

    def test_explicit_display_name_wins(self, registry):
        session_id = registry.create_session(display_name="Counter 2", customer_name="Ana")

        assert registry.get_session(session_id).display_name == "Counter 2"

    def test_max_sessions_is_advisory(self, registry):
        for _ in range(4):
            registry.create_session()

        assert registry.is_max_sessions_reached()

        session_id = registry.create_session()

        assert session_id in registry
        assert len(registry) == 6

    @pytest.mark.parametrize("number, customer, expected", [
        (3, None, "Session 3"),
        (3, "Ana", "Ana"),
        (3, "A" * 20, "A" * 20),
        (3, "A" * 21, "A" * 17 + "..."),
    ])
    def test_generate_session_name(self, number, customer, expected):
        assert generate_session_name(number, customer) == expected


class TestSwitchAndClose:

    def test_switch_active(self, registry):
        first_id = registry.active_session_id
        registry.create_session()

        registry.switch_active(first_id)

        assert registry.active_session_id == first_id

    def test_switch_to_unknown_session(self, registry):
        with pytest.raises(SessionNotFoundException):
            registry.switch_active("missing")

    def test_close_last_session_fails(self, registry):
        with pytest.raises(CannotCloseLastSessionException):
            registry.close_session(registry.active_session_id)

        assert len(registry) == 1

    def test_close_unknown_session(self, registry):
        with pytest.raises(SessionNotFoundException):
            registry.close_session("missing")

    def test_close_active_session_activates_oldest_remaining(self, registry):
        first_id = registry.active_session_id
        second_id = registry.create_session()
        third_id = registry.create_session()

        registry.close_session(third_id)

        assert registry.active_session_id == first_id
        assert [s.id for s in registry.list_sessions()] == [first_id, second_id]

    def test_close_inactive_session_keeps_active(self, registry):
        first_id = registry.active_session_id
        second_id = registry.create_session()

        registry.close_session(first_id)

        assert registry.active_session_id == second_id

    @pytest.mark.asyncio
    async def test_close_discards_pending_lookup(self, registry, stock_lookup):
        registry.create_session()
        session = registry.active_session
        gate = stock_lookup.hold("BRK-001")
        task = asyncio.create_task(session.cart.add_item("BRK-001", 1))
        await asyncio.sleep(0)

        registry.close_session(session.id)
        gate.set()

        with pytest.raises(OperationAbandonedException):
            await task
        assert session.cart.is_empty

    @pytest.mark.asyncio
    async def test_close_refused_while_payment_outstanding(self, registry, payment_service):
        registry.create_session()
        session = registry.active_session
        await session.cart.add_item("BRK-001", 1)
        session.checkout.proceed_to_checkout()
        gate = payment_service.hold()

        payment = asyncio.create_task(session.checkout.submit_payment(PaymentMethod.CASH))
        await payment_service.submitted.wait()

        with pytest.raises(SessionBusyException):
            registry.close_session(session.id)

        gate.set()
        await payment
        registry.close_session(session.id)
        assert session.id not in registry


class TestIsolation:

    @pytest.mark.asyncio
    async def test_sessions_have_independent_carts(self, registry):
        first = registry.active_session
        second = registry.get_session(registry.create_session())

        await first.cart.add_item("BRK-001", 2)
        await second.cart.add_item("OIL-002", 1)
        await first.cart.update_quantity("BRK-001", 3)

        assert first.cart.total == Decimal("30.00")
        assert second.cart.total == Decimal("7.50")


class TestCustomerAndRename:

    def test_set_customer_relabels_tab(self, registry):
        session_id = registry.active_session_id

        registry.set_customer(session_id, "C-1", "Ana")

        session = registry.get_session(session_id)
        assert session.customer_name == "Ana"
        assert session.display_name == "Ana"

    def test_clear_customer(self, registry):
        session_id = registry.active_session_id
        registry.set_customer(session_id, "C-1", "Ana")

        registry.clear_customer(session_id)

        session = registry.get_session(session_id)
        assert session.customer_id is None
        assert session.customer_name is None

    def test_rename_ignores_blank_names(self, registry):
        session_id = registry.active_session_id

        registry.rename_session(session_id, "Counter 1")
        registry.rename_session(session_id, "   ")

        assert registry.get_session(session_id).display_name == "Counter 1"

    def test_summaries_flag_active_session(self, registry):
        registry.create_session()

        summaries = registry.summaries()

        assert [summary.is_active for summary in summaries] == [False, True]
        assert summaries[0].display_name == "Default Session"


class TestIdleCleanup:

    def test_cleanup_removes_idle_empty_inactive_sessions(self, registry):
        idle_id = registry.active_session_id
        registry.create_session()

        removed = registry.cleanup_idle_sessions(timedelta(seconds=-1))

        assert removed == [idle_id]
        assert idle_id not in registry

    @pytest.mark.asyncio
    async def test_cleanup_keeps_sessions_with_items(self, registry):
        busy = registry.active_session
        await busy.cart.add_item("BRK-001", 1)
        registry.create_session()

        removed = registry.cleanup_idle_sessions(timedelta(seconds=-1))

        assert removed == []
        assert busy.id in registry

    def test_cleanup_keeps_recent_sessions(self, registry):
        registry.create_session()

        assert registry.cleanup_idle_sessions(timedelta(hours=1)) == []

    def test_cleanup_never_empties_registry(self, stock_lookup, payment_service):
        registry = SessionRegistry(stock_lookup, payment_service)

        registry.cleanup_idle_sessions(timedelta(seconds=-1))

        assert len(registry) == 1
        assert registry.active_session_id in registry

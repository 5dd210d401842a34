"""Unit tests for credit resolution and the credit ledger.

Run with: pytest tests/test_credits.py -v
"""

import uuid
from datetime import timedelta

import pytest

from bookings.domain import CreditCheck, CreditSource, PlanType, StudioId, SubscriptionStatus
from bookings.domain.errors import CreditIntegrityError, StaleCreditSourceError
from bookings.services.credit_ledger import CreditLedger
from bookings.services.credit_resolver import (
    ClassPackStrategy,
    CompClassStrategy,
    CreditResolver,
)
from tests.fakes import NOW, InMemoryCreditStore, new_member


@pytest.fixture
def credits() -> InMemoryCreditStore:
    return InMemoryCreditStore()


@pytest.fixture
def studio_id() -> StudioId:
    return StudioId(uuid.uuid4())


@pytest.fixture
def resolver(credits) -> CreditResolver:
    return CreditResolver.default(credits, clock=lambda: NOW)


@pytest.fixture
def ledger(credits) -> CreditLedger:
    return CreditLedger(credits)


class TestCreditResolver:
    """Tests for the priority order of credit sources."""

    def test_no_sources_resolves_to_none(self, resolver, studio_id):
        assert resolver.resolve(new_member(), studio_id) == CreditCheck.none()

    def test_comp_class_beats_unlimited_subscription(self, resolver, credits, studio_id):
        """A valid comp grant is always spent before an unlimited plan."""
        member = new_member()
        grant_id = credits.add_comp(member, studio_id, remaining=2)
        credits.add_subscription(member, studio_id, plan_type=PlanType.UNLIMITED)

        check = resolver.resolve(member, studio_id)

        assert check.source is CreditSource.COMP_CLASS
        assert check.source_id == grant_id
        assert check.remaining_after == 1

    def test_earliest_expiring_comp_first(self, resolver, credits, studio_id):
        member = new_member()
        credits.add_comp(member, studio_id, expires_at=None)
        later = credits.add_comp(member, studio_id, expires_at=NOW + timedelta(days=20))
        sooner = credits.add_comp(member, studio_id, expires_at=NOW + timedelta(days=2))

        assert resolver.resolve(member, studio_id).source_id == sooner
        assert later != sooner

    def test_unlimited_subscription_has_no_remaining(self, resolver, credits, studio_id):
        member = new_member()
        sub_id = credits.add_subscription(member, studio_id, plan_type=PlanType.UNLIMITED)

        check = resolver.resolve(member, studio_id)

        assert check.source is CreditSource.SUBSCRIPTION_UNLIMITED
        assert check.source_id == sub_id
        assert check.remaining_after is None

    def test_limited_subscription_with_classes_left(self, resolver, credits, studio_id):
        member = new_member()
        credits.add_subscription(
            member, studio_id, plan_type=PlanType.LIMITED, class_limit=8, used=3
        )

        check = resolver.resolve(member, studio_id)

        assert check.source is CreditSource.SUBSCRIPTION_LIMITED
        assert check.remaining_after == 4

    def test_exhausted_limited_subscription_falls_through_to_pack(
        self, resolver, credits, studio_id
    ):
        member = new_member()
        credits.add_subscription(
            member, studio_id, plan_type=PlanType.LIMITED, class_limit=4, used=4
        )
        pack_id = credits.add_pack(member, studio_id, remaining=3)

        check = resolver.resolve(member, studio_id)

        assert check.source is CreditSource.CLASS_PACK
        assert check.source_id == pack_id

    def test_paused_subscription_is_ignored(self, resolver, credits, studio_id):
        member = new_member()
        credits.add_subscription(member, studio_id, status=SubscriptionStatus.PAUSED)
        assert resolver.resolve(member, studio_id).has_credits is False

    def test_oldest_pack_consumed_first(self, resolver, credits, studio_id):
        member = new_member()
        credits.add_pack(member, studio_id, created_at=NOW - timedelta(days=1))
        oldest = credits.add_pack(member, studio_id, created_at=NOW - timedelta(days=40))

        assert resolver.resolve(member, studio_id).source_id == oldest

    def test_expired_comp_skipped_for_pack(self, resolver, credits, studio_id):
        """An expired comp grant is ignored and the class pack pays."""
        member = new_member()
        credits.add_comp(member, studio_id, remaining=3, expires_at=NOW - timedelta(hours=1))
        pack_id = credits.add_pack(member, studio_id, remaining=1)

        check = resolver.resolve(member, studio_id)

        assert check.source is CreditSource.CLASS_PACK
        assert check.source_id == pack_id
        assert check.remaining_after == 0

    def test_expired_pack_is_skipped(self, resolver, credits, studio_id):
        member = new_member()
        credits.add_pack(member, studio_id, expires_at=NOW - timedelta(days=1))
        assert resolver.resolve(member, studio_id).has_credits is False

    def test_two_active_subscriptions_raise_integrity_error(self, resolver, credits, studio_id):
        member = new_member()
        credits.add_subscription(member, studio_id)
        credits.add_subscription(member, studio_id, plan_type=PlanType.LIMITED, class_limit=4)

        with pytest.raises(CreditIntegrityError):
            resolver.resolve(member, studio_id)

    def test_custom_strategy_order(self, credits, studio_id):
        """Strategies are tried in the order given."""
        member = new_member()
        credits.add_comp(member, studio_id)
        pack_id = credits.add_pack(member, studio_id)
        resolver = CreditResolver(
            [ClassPackStrategy(credits), CompClassStrategy(credits)], clock=lambda: NOW
        )

        assert resolver.resolve(member, studio_id).source_id == pack_id


class TestCreditLedger:
    """Tests for deduct and refund."""

    def test_deduct_then_refund_restores_pack(self, resolver, ledger, credits, studio_id):
        member = new_member()
        pack_id = credits.add_pack(member, studio_id, remaining=3, total=10)
        check = resolver.resolve(member, studio_id)

        ledger.deduct(check)
        assert credits.remaining(pack_id) == 2
        assert ledger.refund(check) is True
        assert credits.remaining(pack_id) == 3

    def test_deduct_then_refund_restores_comp(self, resolver, ledger, credits, studio_id):
        member = new_member()
        grant_id = credits.add_comp(member, studio_id, remaining=1)
        check = resolver.resolve(member, studio_id)

        ledger.deduct(check)
        assert credits.remaining(grant_id) == 0
        ledger.refund(check)
        assert credits.remaining(grant_id) == 1

    def test_deduct_then_refund_restores_limited_usage(
        self, resolver, ledger, credits, studio_id
    ):
        member = new_member()
        sub_id = credits.add_subscription(
            member, studio_id, plan_type=PlanType.LIMITED, class_limit=4, used=1
        )
        check = resolver.resolve(member, studio_id)

        ledger.deduct(check)
        assert credits.used(sub_id) == 2
        ledger.refund(check)
        assert credits.used(sub_id) == 1

    def test_unlimited_is_a_no_op(self, resolver, ledger, credits, studio_id):
        member = new_member()
        credits.add_subscription(member, studio_id)
        check = resolver.resolve(member, studio_id)

        ledger.deduct(check)
        assert ledger.refund(check) is False

    def test_none_is_a_no_op(self, ledger):
        ledger.deduct(CreditCheck.none())
        assert ledger.refund(CreditCheck.none()) is False

    def test_stale_check_is_rejected(self, resolver, ledger, credits, studio_id):
        """A second deduct from the same resolved balance must not leak a class."""
        member = new_member()
        pack_id = credits.add_pack(member, studio_id, remaining=2)
        check = resolver.resolve(member, studio_id)
        ledger.deduct(check)

        with pytest.raises(StaleCreditSourceError):
            ledger.deduct(check)
        assert credits.remaining(pack_id) == 1

    def test_refund_never_exceeds_total(self, ledger, credits, studio_id):
        member = new_member()
        pack_id = credits.add_pack(member, studio_id, remaining=5, total=5)

        restored = ledger.refund(CreditCheck.charged_to(CreditSource.CLASS_PACK, pack_id))

        assert restored is False
        assert credits.remaining(pack_id) == 5

    def test_release_usage_never_goes_negative(self, ledger, credits, studio_id):
        sub_id = credits.add_subscription(
            new_member(), studio_id, plan_type=PlanType.LIMITED, class_limit=4, used=0
        )
        check = CreditCheck.charged_to(CreditSource.SUBSCRIPTION_LIMITED, sub_id)

        assert ledger.refund(check) is False
        assert credits.used(sub_id) == 0

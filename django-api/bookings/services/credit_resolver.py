"""Credit resolution - decides which source pays for one class visit.

Sources are tried in a fixed priority order and the first match wins:

1. Comp classes (free credits, earliest expiry first)
2. Unlimited subscription
3. Limited subscription with classes left this period
4. Class packs (oldest first, non-expired)
5. None, the member needs to buy a drop-in or plan

Resolution is a pure read. Nothing here mutates a credit source.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Self, Sequence

from bookings.domain import CreditCheck, CreditSource, MemberId, PlanType, StudioId
from bookings.stores.interfaces import CreditStore


class CreditStrategy(ABC):
    """One credit source in the resolution chain."""

    def __init__(self, store: CreditStore) -> None:
        self._store = store

    @abstractmethod
    def try_resolve(
        self, member_id: MemberId, studio_id: StudioId, now: datetime
    ) -> CreditCheck | None:
        """Return a usable check for this source, or None to fall through."""
        ...


class CompClassStrategy(CreditStrategy):
    def try_resolve(self, member_id, studio_id, now):
        for grant in self._store.list_comp_grants(member_id, studio_id):
            if grant.is_usable(now):
                return CreditCheck(
                    has_credits=True,
                    source=CreditSource.COMP_CLASS,
                    source_id=grant.id,
                    remaining_after=grant.remaining_classes - 1,
                )
        return None


class UnlimitedSubscriptionStrategy(CreditStrategy):
    def try_resolve(self, member_id, studio_id, now):
        subscription = self._store.get_active_subscription(member_id, studio_id)
        if subscription is None or subscription.plan_type is not PlanType.UNLIMITED:
            return None
        return CreditCheck(
            has_credits=True,
            source=CreditSource.SUBSCRIPTION_UNLIMITED,
            source_id=subscription.id,
        )


class LimitedSubscriptionStrategy(CreditStrategy):
    def try_resolve(self, member_id, studio_id, now):
        subscription = self._store.get_active_subscription(member_id, studio_id)
        if subscription is None or subscription.plan_type is not PlanType.LIMITED:
            return None
        if subscription.class_limit is None:
            return None
        used = subscription.classes_used_this_period
        if used >= subscription.class_limit:
            return None
        return CreditCheck(
            has_credits=True,
            source=CreditSource.SUBSCRIPTION_LIMITED,
            source_id=subscription.id,
            remaining_after=subscription.class_limit - used - 1,
        )


class ClassPackStrategy(CreditStrategy):
    def try_resolve(self, member_id, studio_id, now):
        for pack in self._store.list_class_packs(member_id, studio_id):
            if pack.is_usable(now):
                return CreditCheck(
                    has_credits=True,
                    source=CreditSource.CLASS_PACK,
                    source_id=pack.id,
                    remaining_after=pack.remaining_classes - 1,
                )
        return None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CreditResolver:
    """Walks the strategy list and returns the first usable credit."""

    def __init__(
        self,
        strategies: Sequence[CreditStrategy],
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._strategies = tuple(strategies)
        self._clock = clock

    @classmethod
    def default(cls, store: CreditStore, clock: Callable[[], datetime] = _utcnow) -> Self:
        return cls(
            [
                CompClassStrategy(store),
                UnlimitedSubscriptionStrategy(store),
                LimitedSubscriptionStrategy(store),
                ClassPackStrategy(store),
            ],
            clock=clock,
        )

    def resolve(self, member_id: MemberId, studio_id: StudioId) -> CreditCheck:
        """Return the credit that would pay for one visit.

        Raises:
            CreditIntegrityError: If the member has more than one active subscription.
        """
        now = self._clock()
        for strategy in self._strategies:
            check = strategy.try_resolve(member_id, studio_id, now)
            if check is not None:
                return check
        return CreditCheck.none()

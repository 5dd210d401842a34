"""Credit ledger - the only code path that writes credit balances."""

import logging
from typing import assert_never

from bookings.domain import CreditCheck, CreditSource
from bookings.domain.errors import StaleCreditSourceError
from bookings.stores.interfaces import CreditStore

logger = logging.getLogger(__name__)


class CreditLedger:
    """Deducts and refunds exactly one unit on the source a CreditCheck names."""

    def __init__(self, store: CreditStore) -> None:
        self._store = store

    def deduct(self, check: CreditCheck) -> None:
        """Consume one unit from the resolved source.

        Writes the precomputed ``remaining_after`` only if the source still
        holds the balance the resolver saw.

        Raises:
            StaleCreditSourceError: If the source changed since it was resolved.
        """
        if not check.has_credits or check.source_id is None:
            return

        match check.source:
            case CreditSource.COMP_CLASS:
                applied = self._store.take_comp_class(check.source_id, check.remaining_after)
            case CreditSource.SUBSCRIPTION_LIMITED:
                applied = self._store.record_subscription_use(
                    check.source_id, check.remaining_after
                )
            case CreditSource.CLASS_PACK:
                applied = self._store.take_class_pack(check.source_id, check.remaining_after)
            case CreditSource.SUBSCRIPTION_UNLIMITED | CreditSource.NONE:
                applied = True
            case _:
                assert_never(check.source)

        if not applied:
            raise StaleCreditSourceError(check.source.value, str(check.source_id))
        logger.debug("Deducted one %s credit from %s", check.source.value, check.source_id)

    def refund(self, check: CreditCheck) -> bool:
        """Give back one unit to the source. Returns False when nothing was restored."""
        if not check.has_credits or check.source_id is None:
            return False

        match check.source:
            case CreditSource.COMP_CLASS:
                restored = self._store.return_comp_class(check.source_id)
            case CreditSource.SUBSCRIPTION_LIMITED:
                restored = self._store.release_subscription_use(check.source_id)
            case CreditSource.CLASS_PACK:
                restored = self._store.return_class_pack(check.source_id)
            case CreditSource.SUBSCRIPTION_UNLIMITED | CreditSource.NONE:
                return False
            case _:
                assert_never(check.source)

        if not restored:
            logger.warning(
                "Refund to %s %s had no effect, balance already full",
                check.source.value,
                check.source_id,
            )
        return restored

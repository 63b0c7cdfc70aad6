"""Resolve the address of an entity created by a transaction.

Three signals are available once a create transaction is confirmed:

* the address carried by the transaction's own events (trusted most, it
  comes straight from the committed transaction),
* the address computed locally with object address derivation,
* the indexer listing, which lags the chain and is only used to upgrade
  confidence in the event address, never to override it.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Sequence

from .address_deriver import PRIMARY_SUBACCOUNT_SEED, addresses_equal, derive_object_address
from .confirmation_poller import DEFAULT_BASE_DELAY, DEFAULT_MAX_ATTEMPTS, ConfirmationPoller
from .decibel_models import (
    CreatedEntityHints,
    IdentifierSource,
    ListingResponse,
    PollAttempt,
    ResolvedIdentifier,
    SubaccountRecord,
    TransactionEvent,
)
from .exceptions import IndexerUnavailableError

logger = logging.getLogger(__name__)

SUBACCOUNT_CREATED_EVENT_SUFFIX = "::SubaccountCreatedEvent"
EVENT_OWNER_FIELD = "owner"
EVENT_ID_FIELDS = ("subaccount", "subaccount_address")

PollFn = Callable[[], Awaitable[ListingResponse]]


def _event_address(value: Any) -> Optional[str]:
    # Object<T> fields are rendered as {"inner": "0x..."}
    if isinstance(value, dict):
        value = value.get("inner")
    if isinstance(value, str) and value:
        return value
    return None


def extract_event_candidate(
    events: Iterable[TransactionEvent],
    owner_address: str,
    type_suffix: str = SUBACCOUNT_CREATED_EVENT_SUFFIX,
    owner_field: str = EVENT_OWNER_FIELD,
    id_fields: Sequence[str] = EVENT_ID_FIELDS,
) -> Optional[str]:
    """Find the created entity address in a transaction's events.

    The first event whose type ends with ``type_suffix`` and whose owner
    field equals ``owner_address`` wins.
    """
    for event in events:
        if not event.type.endswith(type_suffix):
            continue

        owner = _event_address(event.data.get(owner_field))
        if owner is None or not addresses_equal(owner, owner_address):
            continue

        for field in id_fields:
            candidate = _event_address(event.data.get(field))
            if candidate:
                logger.debug(f"Found {field}={candidate} in event {event.type}")
                return candidate

    return None


def build_subaccount_hints(owner_address: str, events: Iterable[TransactionEvent]) -> CreatedEntityHints:
    """Collect the event and calculated candidates for a new subaccount."""
    return CreatedEntityHints(
        owner_address=owner_address,
        calculated_candidate=derive_object_address(owner_address, PRIMARY_SUBACCOUNT_SEED),
        event_candidate=extract_event_candidate(events, owner_address),
    )


class ReconciliationEngine:
    """Pick one trustworthy identifier from events, derivation and the indexer."""

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_attempts < 0:
            raise ValueError("max_attempts must be non-negative")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep
        self.attempts: List[PollAttempt] = []

    async def resolve(self, hints: CreatedEntityHints, poll_fn: PollFn) -> ResolvedIdentifier:
        """Resolve the canonical identifier.

        Args:
            hints: Event and calculated candidates
            poll_fn: Coroutine function returning the current indexer listing

        Returns:
            Resolved identifier tagged with the source it was trusted from
        """
        self.attempts = []

        if self.max_attempts == 0:
            # Index lookup disabled, report what the transaction itself told us
            return self._fallback(hints)

        async def check_listing() -> ListingResponse:
            response = await poll_fn()
            if not response.ok:
                raise IndexerUnavailableError(response.status)
            return response

        poller: ConfirmationPoller[ListingResponse] = ConfirmationPoller(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            sleep=self._sleep,
            label="Indexer lookup",
        )
        response = await poller.poll(check_listing, lambda r: bool(r.records))
        self.attempts = list(poller.attempts)

        if poller.satisfied and response is not None:
            return self._select_from_records(hints, response.records)

        return self._fallback(hints)

    def _select_from_records(
        self, hints: CreatedEntityHints, records: List[SubaccountRecord]
    ) -> ResolvedIdentifier:
        attempts = len(self.attempts)

        if hints.event_candidate:
            for record in records:
                if addresses_equal(record.subaccount_address, hints.event_candidate):
                    logger.info(f"Indexer confirmed {hints.event_candidate}")
                    return ResolvedIdentifier(hints.event_candidate, IdentifierSource.API_VERIFIED, attempts)

            logger.warning(
                f"Indexer does not list {hints.event_candidate} yet, "
                f"trusting the transaction event"
            )
            return ResolvedIdentifier(hints.event_candidate, IdentifierSource.EVENT_UNVERIFIED, attempts)

        # Creating a subaccount produces a non-primary one
        chosen = next((r for r in records if not r.is_primary), records[0])
        logger.info(f"Selected {chosen.subaccount_address} from {len(records)} indexed subaccount(s)")
        return ResolvedIdentifier(chosen.subaccount_address, IdentifierSource.API_VERIFIED, attempts)

    def _fallback(self, hints: CreatedEntityHints) -> ResolvedIdentifier:
        attempts = len(self.attempts)

        if hints.event_candidate:
            logger.warning(
                f"Could not verify {hints.event_candidate} with the indexer, "
                f"using the address from the transaction event"
            )
            return ResolvedIdentifier(hints.event_candidate, IdentifierSource.EVENT_EXTRACTED, attempts)

        logger.warning(
            f"No event or indexer result, using calculated address {hints.calculated_candidate}. "
            f"Verify it before depositing."
        )
        return ResolvedIdentifier(hints.calculated_candidate, IdentifierSource.CALCULATED, attempts)


async def resolve_created_entity(
    hints: CreatedEntityHints,
    poll_fn: PollFn,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
) -> ResolvedIdentifier:
    """Convenience wrapper around :class:`ReconciliationEngine`."""
    engine = ReconciliationEngine(max_attempts=max_attempts, base_delay=base_delay)
    return await engine.resolve(hints, poll_fn)

"""
Simulation result normalization.

Turns a raw simulation trace into the resource usage and rent changes the
fee calculators consume.

Failure policy:
1. Missing cost metrics or resources fail the whole trace (MalformedTrace)
2. An entry whose snapshot cannot be decoded is skipped and reported
3. A snapshot without a TTL gets the protocol minimum lifetime
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple, Union

from .codec import DecodedEntry, SnapshotCodec, encoded_length
from .errors import MalformedEntrySnapshot, MalformedTrace
from .rates import DEFAULT_TTL, TtlDefaults
from .trace import SimulationTrace, StateChange
from .usage import EntryChangeType, LedgerEntryRentChange, ResourceUsage

logger = logging.getLogger(__name__)


class SkipReason(Enum):
    """Why a state change was left out of the rent computation."""
    MALFORMED_SNAPSHOT = "malformed_snapshot"
    MISSING_SNAPSHOT = "missing_snapshot"
    UNKNOWN_CHANGE_TYPE = "unknown_change_type"


@dataclass(frozen=True)
class EntrySkip:
    """A state change that could not be normalized."""
    index: int
    reason: SkipReason
    detail: str
    key: Optional[str] = None


@dataclass(frozen=True)
class NormalizedTrace:
    """Calculator inputs extracted from a trace, plus what was skipped.

    Unpacks as `(usage, changes)`.
    """
    usage: ResourceUsage
    changes: Tuple[LedgerEntryRentChange, ...]
    latest_ledger: int
    skipped: Tuple[EntrySkip, ...] = ()
    deleted_entries: int = 0
    memory_bytes: int = 0

    def __iter__(self) -> Iterator:
        yield self.usage
        yield self.changes

    @property
    def is_partial(self) -> bool:
        """True when at least one entry was skipped."""
        return bool(self.skipped)


def normalize_usage(trace: SimulationTrace, codec: SnapshotCodec) -> ResourceUsage:
    """Extract resource usage counters from a trace.

    Args:
        trace: Simulation trace
        codec: Codec for events

    Returns:
        ResourceUsage

    Raises:
        MalformedTrace: If cost metrics, resources or any sized payload are unusable
    """
    if trace.cost is None:
        raise MalformedTrace("Trace is missing cost metrics")
    if trace.resources is None:
        raise MalformedTrace("Trace is missing transaction resources")

    resources = trace.resources
    try:
        events_size = sum(codec.event_size(event) for event in trace.events)
        return_value_size = encoded_length(trace.results[0]) if trace.results else 0
        transaction_size = (
            encoded_length(trace.transaction_envelope) if trace.transaction_envelope else 0
        )
    except MalformedEntrySnapshot as e:
        raise MalformedTrace(f"Cannot size trace payload: {e}") from e

    return ResourceUsage(
        cpu_instructions=trace.cost.cpu_instructions,
        ledger_entries_read=resources.read_only_entries + resources.read_write_entries,
        ledger_entries_written=resources.read_write_entries,
        bytes_read=resources.read_bytes,
        bytes_written=resources.write_bytes,
        transaction_size_bytes=transaction_size,
        events_and_return_bytes=events_size + return_value_size,
    )


def _resolve_live_until(
    entry: DecodedEntry,
    latest_ledger: int,
    ttl: TtlDefaults,
    label: str,
) -> int:
    if entry.live_until_ledger is not None:
        return entry.live_until_ledger
    live_until = ttl.default_live_until(entry.is_persistent, latest_ledger)
    logger.debug("No TTL on %s snapshot, defaulting live-until to %d", label, live_until)
    return live_until


def normalize_state_change(
    change: StateChange,
    index: int,
    codec: SnapshotCodec,
    latest_ledger: int,
    ttl: TtlDefaults = DEFAULT_TTL,
) -> Union[LedgerEntryRentChange, EntrySkip, None]:
    """Normalize one state change.

    Returns:
        A rent change, an EntrySkip describing why it was left out, or None
        for deleted entries
    """
    def skip(reason: SkipReason, detail: str) -> EntrySkip:
        return EntrySkip(index=index, reason=reason, detail=detail, key=change.key)

    try:
        change_type = EntryChangeType(change.type)
    except ValueError:
        return skip(SkipReason.UNKNOWN_CHANGE_TYPE, f"Unknown change type {change.type!r}")

    if change_type == EntryChangeType.DELETED:
        return None

    if not change.after:
        return skip(SkipReason.MISSING_SNAPSHOT, "Missing 'after' snapshot")
    if change_type == EntryChangeType.UPDATED and not change.before:
        return skip(SkipReason.MISSING_SNAPSHOT, "Missing 'before' snapshot")

    try:
        after = codec.decode_entry(change.after)
        before = codec.decode_entry(change.before) if change_type == EntryChangeType.UPDATED else None
    except MalformedEntrySnapshot as e:
        return skip(SkipReason.MALFORMED_SNAPSHOT, str(e))

    new_live_until = _resolve_live_until(after, latest_ledger, ttl, "after")

    if before is None:
        return LedgerEntryRentChange(
            is_persistent=after.is_persistent,
            old_size_bytes=0,
            new_size_bytes=after.size_bytes,
            old_live_until_ledger=0,
            new_live_until_ledger=new_live_until,
            entry_type=EntryChangeType.CREATED,
            key=change.key,
        )

    # Durability never changes in place
    return LedgerEntryRentChange(
        is_persistent=before.is_persistent,
        old_size_bytes=before.size_bytes,
        new_size_bytes=after.size_bytes,
        old_live_until_ledger=_resolve_live_until(before, latest_ledger, ttl, "before"),
        new_live_until_ledger=new_live_until,
        entry_type=EntryChangeType.UPDATED,
        key=change.key,
    )


def normalize(
    trace: SimulationTrace,
    codec: SnapshotCodec,
    ttl: TtlDefaults = DEFAULT_TTL,
) -> NormalizedTrace:
    """Normalize a simulation trace into calculator inputs.

    A single bad entry never fails the batch: it is recorded in
    `skipped` and the remaining entries are still normalized.

    Args:
        trace: Simulation trace
        codec: Codec for snapshots and events
        ttl: Minimum lifetimes for entries without a TTL record

    Returns:
        NormalizedTrace

    Raises:
        MalformedTrace: If the trace lacks cost metrics or resources
    """
    usage = normalize_usage(trace, codec)

    changes: List[LedgerEntryRentChange] = []
    skipped: List[EntrySkip] = []
    deleted = 0
    for index, state_change in enumerate(trace.state_changes):
        outcome = normalize_state_change(state_change, index, codec, trace.latest_ledger, ttl)
        if outcome is None:
            deleted += 1
        elif isinstance(outcome, EntrySkip):
            logger.warning(
                "Skipping state change %d (%s): %s",
                index, outcome.reason.value, outcome.detail
            )
            skipped.append(outcome)
        else:
            changes.append(outcome)

    return NormalizedTrace(
        usage=usage,
        changes=tuple(changes),
        latest_ledger=trace.latest_ledger,
        skipped=tuple(skipped),
        deleted_entries=deleted,
        memory_bytes=trace.cost.memory_bytes,
    )

"""
Rent fee calculations.

Charges for extending the lifetime of ledger entries and for growing
entries during the ledgers that were already paid for.

Ledger counts:
- Extension of a new entry counts from the current ledger inclusive,
  i.e. from `current - 1` exclusive.
- Prepaid ledgers of an existing entry count from the current ledger up
  to and including its old live-until ledger.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .errors import InvalidUsage
from .rates import FeeRateTable
from .units import apply_minimum_floor, ceil_div
from .usage import LedgerEntryRentChange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntryRentFee:
    """Rent charged for a single entry change."""
    change: LedgerEntryRentChange
    extension_ledgers: int
    prepaid_ledgers: int
    extension_fee: int
    growth_fee: int
    extended: bool
    skipped: bool = False

    @property
    def total(self) -> int:
        return self.extension_fee + self.growth_fee


@dataclass(frozen=True)
class RentFeeBreakdown:
    """Rent fee for a batch of entry changes, in stroops."""
    entries: Tuple[EntryRentFee, ...]
    current_ledger_seq: int
    extended_entries: int
    ttl_entry_write_fee: int
    ttl_entry_bytes_fee: int

    @property
    def entries_fee(self) -> int:
        """Sum of extension and growth fees across entries."""
        return sum(entry.total for entry in self.entries)

    @property
    def total(self) -> int:
        return self.entries_fee + self.ttl_entry_write_fee + self.ttl_entry_bytes_fee


def exclusive_ledger_diff(lo: int, hi: int) -> int:
    """Ledgers in (lo, hi]; 0 when hi <= lo."""
    return max(0, hi - lo)


def inclusive_ledger_diff(lo: int, hi: int) -> int:
    """Ledgers in [lo, hi]; 0 when hi < lo."""
    if hi < lo:
        return 0
    return hi - lo + 1


def rent_fee_for_size_and_ledgers(
    is_persistent: bool,
    entry_size: int,
    rent_ledgers: int,
    rates: FeeRateTable,
) -> int:
    """Rent for storing `entry_size` bytes over `rent_ledgers` ledgers.

    The result is never below the same rent charged at the minimum write
    fee rate.

    Args:
        is_persistent: Durability class of the entry
        entry_size: Bytes being rented
        rent_ledgers: Number of ledgers
        rates: Rate table

    Returns:
        Fee in stroops, rounded UP
    """
    denominator = rates.data_size_1kb_increment * rates.rent_rate_denominator(is_persistent)
    computed = ceil_div(entry_size * rates.fee_per_write_1kb * rent_ledgers, denominator)
    minimum = ceil_div(entry_size * rates.minimum_write_fee_per_1kb * rent_ledgers, denominator)
    return apply_minimum_floor(computed, minimum)


def extension_ledgers(change: LedgerEntryRentChange, current_ledger: int) -> int:
    """Ledgers of lifetime the change buys beyond what is already paid."""
    if change.is_new:
        return exclusive_ledger_diff(max(current_ledger - 1, 0), change.new_live_until_ledger)
    if change.old_live_until_ledger == 0:
        return exclusive_ledger_diff(current_ledger, change.new_live_until_ledger)
    return exclusive_ledger_diff(change.old_live_until_ledger, change.new_live_until_ledger)


def prepaid_ledgers(change: LedgerEntryRentChange, current_ledger: int) -> int:
    """Ledgers of lifetime already paid for at the old size."""
    if change.is_new:
        return 0
    return inclusive_ledger_diff(current_ledger, change.old_live_until_ledger)


def rent_fee_per_entry_change(
    change: LedgerEntryRentChange,
    current_ledger: int,
    rates: FeeRateTable,
) -> EntryRentFee:
    """Extension and growth fees for one entry change."""
    if change.is_deleted:
        return EntryRentFee(
            change=change,
            extension_ledgers=0,
            prepaid_ledgers=0,
            extension_fee=0,
            growth_fee=0,
            extended=False,
            skipped=True,
        )

    extension = extension_ledgers(change, current_ledger)
    extension_fee = 0
    if extension > 0:
        extension_fee = rent_fee_for_size_and_ledgers(
            change.is_persistent, change.new_size_bytes, extension, rates
        )

    prepaid = prepaid_ledgers(change, current_ledger)
    size_increase = max(0, change.new_size_bytes - change.old_size_bytes)
    growth_fee = 0
    if prepaid > 0 and size_increase > 0:
        growth_fee = rent_fee_for_size_and_ledgers(
            change.is_persistent, size_increase, prepaid, rates
        )

    return EntryRentFee(
        change=change,
        extension_ledgers=extension,
        prepaid_ledgers=prepaid,
        extension_fee=extension_fee,
        growth_fee=growth_fee,
        extended=change.old_live_until_ledger < change.new_live_until_ledger,
    )


def rent_fee_breakdown(
    changes: Sequence[LedgerEntryRentChange],
    current_ledger_seq: int,
    rates: FeeRateTable,
) -> RentFeeBreakdown:
    """Rent fee for every change plus TTL bookkeeping fees.

    Each entry whose live-until ledger grows rewrites its TTL entry, which
    is charged a flat write fee and the write fee for the TTL key bytes.
    Deleted entries are reported but never charged.

    Args:
        changes: Entry changes touched by the transaction
        current_ledger_seq: Ledger the transaction applies in
        rates: Rate table

    Returns:
        RentFeeBreakdown

    Raises:
        InvalidUsage: If current_ledger_seq is not a non-negative integer
            or a change is not a LedgerEntryRentChange
    """
    if isinstance(current_ledger_seq, bool) or not isinstance(current_ledger_seq, int):
        raise InvalidUsage(f"current_ledger_seq must be an integer, got {current_ledger_seq!r}")
    if current_ledger_seq < 0:
        raise InvalidUsage(f"current_ledger_seq must be >= 0, got {current_ledger_seq}")

    entries: List[EntryRentFee] = []
    for change in changes:
        if not isinstance(change, LedgerEntryRentChange):
            raise InvalidUsage(
                f"changes must contain LedgerEntryRentChange, got {type(change).__name__}"
            )
        entries.append(rent_fee_per_entry_change(change, current_ledger_seq, rates))

    extended = sum(1 for entry in entries if entry.extended)
    ttl_write_fee = extended * rates.fee_per_write_entry
    ttl_bytes_fee = ceil_div(
        extended * rates.ttl_entry_size * rates.fee_per_write_1kb,
        rates.data_size_1kb_increment,
    )

    breakdown = RentFeeBreakdown(
        entries=tuple(entries),
        current_ledger_seq=current_ledger_seq,
        extended_entries=extended,
        ttl_entry_write_fee=ttl_write_fee,
        ttl_entry_bytes_fee=ttl_bytes_fee,
    )
    logger.debug(
        "Rent fee for %d entries at ledger %d: %d stroops (%d extended)",
        len(entries), current_ledger_seq, breakdown.total, extended
    )
    return breakdown


def compute_rent_fee(
    changes: Sequence[LedgerEntryRentChange],
    current_ledger_seq: int,
    rates: FeeRateTable,
) -> int:
    """Total rent fee in stroops."""
    return rent_fee_breakdown(changes, current_ledger_seq, rates).total

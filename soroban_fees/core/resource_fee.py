"""
Resource fee calculations.

Maps transaction resource usage to a fee in stroops with the protocol's
per-resource rates and rounding rules.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Dict

from .errors import InvalidUsage
from .rates import FeeRateTable
from .units import apply_minimum_floor, ceil_div
from .usage import ResourceUsage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceFeeBreakdown:
    """Per-resource fee contributions in stroops."""
    instructions: int
    read_entries: int
    write_entries: int
    read_bytes: int
    write_bytes: int
    historical: int
    bandwidth: int
    events: int

    @property
    def total(self) -> int:
        """Sum of all contributions."""
        return sum(self.as_dict().values())

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def compute_fee_per_increment(resource_value: int, fee_rate: int, increment: int) -> int:
    """Fee for a resource charged per increment, rounded UP."""
    return ceil_div(resource_value * fee_rate, increment)


def compute_write_bytes_fee(bytes_written: int, rates: FeeRateTable) -> int:
    """Write-bytes fee, never below the minimum write fee.

    Args:
        bytes_written: Bytes written to the ledger
        rates: Rate table

    Returns:
        Fee in stroops
    """
    kb = rates.data_size_1kb_increment
    computed = compute_fee_per_increment(bytes_written, rates.fee_per_write_1kb, kb)
    minimum = compute_fee_per_increment(bytes_written, rates.minimum_write_fee_per_1kb, kb)
    return apply_minimum_floor(computed, minimum)


def resource_fee_breakdown(usage: ResourceUsage, rates: FeeRateTable) -> ResourceFeeBreakdown:
    """Compute every resource fee contribution independently.

    Args:
        usage: Validated resource usage
        rates: Rate table to charge against

    Returns:
        ResourceFeeBreakdown with one field per resource
    """
    if not isinstance(usage, ResourceUsage):
        raise InvalidUsage(f"usage must be a ResourceUsage, got {type(usage).__name__}")

    kb = rates.data_size_1kb_increment
    tx_size = usage.transaction_size_bytes

    breakdown = ResourceFeeBreakdown(
        instructions=compute_fee_per_increment(
            usage.cpu_instructions,
            rates.fee_per_instruction_increment,
            rates.instructions_increment,
        ),
        read_entries=usage.ledger_entries_read * rates.fee_per_read_entry,
        write_entries=usage.ledger_entries_written * rates.fee_per_write_entry,
        read_bytes=compute_fee_per_increment(usage.bytes_read, rates.fee_per_read_1kb, kb),
        write_bytes=compute_write_bytes_fee(usage.bytes_written, rates),
        historical=compute_fee_per_increment(
            tx_size + rates.tx_base_result_size, rates.fee_per_historical_1kb, kb
        ),
        bandwidth=compute_fee_per_increment(tx_size, rates.fee_per_transaction_size_1kb, kb),
        events=compute_fee_per_increment(
            usage.events_and_return_bytes, rates.fee_per_contract_event_1kb, kb
        ),
    )
    logger.debug("Resource fee breakdown: %s", breakdown.as_dict())
    return breakdown


def compute_resource_fee(usage: ResourceUsage, rates: FeeRateTable) -> int:
    """Total resource fee in stroops."""
    return resource_fee_breakdown(usage, rates).total

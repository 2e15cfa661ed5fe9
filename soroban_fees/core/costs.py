"""
Contract cost aggregation.

Sums fee components in stroops and converts to XLM only for display.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Sequence

from .errors import InvalidUsage
from .rates import FeeRateTable
from .rent_fee import RentFeeBreakdown, rent_fee_breakdown
from .resource_fee import ResourceFeeBreakdown, resource_fee_breakdown
from .units import format_display_units, to_display_units
from .usage import LedgerEntryRentChange, ResourceUsage


@dataclass(frozen=True)
class ContractCosts:
    """Fee components of a contract transaction, in stroops.

    The inclusion fee is resolved outside this package (it depends on
    network congestion) and defaults to 0.
    """
    resource: ResourceFeeBreakdown
    rent: RentFeeBreakdown
    inclusion_fee: int = 0

    @property
    def resource_fee(self) -> int:
        return self.resource.total

    @property
    def rent_fee(self) -> int:
        return self.rent.total

    @property
    def total_fee(self) -> int:
        """Resource fee + rent fee + inclusion fee."""
        return self.resource_fee + self.rent_fee + self.inclusion_fee

    @property
    def resource_fee_xlm(self) -> Decimal:
        return to_display_units(self.resource_fee)

    @property
    def rent_fee_xlm(self) -> Decimal:
        return to_display_units(self.rent_fee)

    @property
    def total_fee_xlm(self) -> Decimal:
        return to_display_units(self.total_fee)

    def summary(self) -> Dict[str, str]:
        """Human-readable totals keyed by component."""
        return {
            "resource_fee": format_display_units(self.resource_fee),
            "rent_fee": format_display_units(self.rent_fee),
            "inclusion_fee": format_display_units(self.inclusion_fee),
            "total_fee": format_display_units(self.total_fee),
        }


def compute_contract_costs(
    usage: ResourceUsage,
    changes: Sequence[LedgerEntryRentChange],
    current_ledger_seq: int,
    rates: FeeRateTable,
    inclusion_fee: int = 0,
) -> ContractCosts:
    """Compute resource and rent fees for one transaction.

    Args:
        usage: Resource usage counters
        changes: Ledger entry rent changes
        current_ledger_seq: Ledger the transaction applies in
        rates: Rate table shared by both calculators
        inclusion_fee: Already-resolved inclusion fee in stroops

    Returns:
        ContractCosts

    Raises:
        InvalidUsage: On invalid usage, changes or inclusion fee
    """
    if isinstance(inclusion_fee, bool) or not isinstance(inclusion_fee, int) or inclusion_fee < 0:
        raise InvalidUsage(f"inclusion_fee must be a non-negative integer, got {inclusion_fee!r}")

    return ContractCosts(
        resource=resource_fee_breakdown(usage, rates),
        rent=rent_fee_breakdown(changes, current_ledger_seq, rates),
        inclusion_fee=inclusion_fee,
    )

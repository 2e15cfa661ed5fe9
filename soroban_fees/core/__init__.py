"""
Core modules for Soroban Fees.

This package contains the fee calculators, the simulation trace
normalizer and the unit primitives they share.
"""

from .costs import ContractCosts, compute_contract_costs
from .rates import DEFAULT_RATE_TABLE, DEFAULT_SCHEDULE, FeeRateTable, FeeSchedule, TtlDefaults
from .rent_fee import compute_rent_fee
from .resource_fee import compute_resource_fee
from .usage import EntryChangeType, LedgerEntryRentChange, ResourceUsage

__all__ = [
    "ContractCosts",
    "DEFAULT_RATE_TABLE",
    "DEFAULT_SCHEDULE",
    "EntryChangeType",
    "FeeRateTable",
    "FeeSchedule",
    "LedgerEntryRentChange",
    "ResourceUsage",
    "TtlDefaults",
    "compute_contract_costs",
    "compute_rent_fee",
    "compute_resource_fee",
]

"""
Fee rate tables and network schedules.

Rates are immutable values passed explicitly to the calculators, so several
schedules (mainnet, testnet, future protocol versions) can coexist.
"""

from dataclasses import dataclass, field, fields

from .errors import DivisionByZero

# Fields used as divisors; a zero here can never produce a valid fee
_DIVISOR_FIELDS = (
    "instructions_increment",
    "data_size_1kb_increment",
    "persistent_rent_rate_denominator",
    "temporary_rent_rate_denominator",
)


@dataclass(frozen=True)
class FeeRateTable:
    """Per-resource rates in stroops.

    The 1kb rates are charged per `data_size_1kb_increment` bytes and
    rounded up. Temporary entries use a larger rent denominator than
    persistent ones, which makes their rent cheaper per byte-ledger.
    """
    fee_per_instruction_increment: int = 25
    instructions_increment: int = 10_000
    fee_per_read_entry: int = 6_250
    fee_per_write_entry: int = 10_000
    fee_per_read_1kb: int = 1_786
    fee_per_write_1kb: int = 11_800
    fee_per_historical_1kb: int = 16_235
    fee_per_contract_event_1kb: int = 10_000
    fee_per_transaction_size_1kb: int = 1_624
    minimum_write_fee_per_1kb: int = 1_000
    data_size_1kb_increment: int = 1_024
    tx_base_result_size: int = 300  # Fixed result overhead charged as historical data
    persistent_rent_rate_denominator: int = 2_103
    temporary_rent_rate_denominator: int = 4_206
    ttl_entry_size: int = 48  # Size of the TTL bookkeeping entry key

    def __post_init__(self):
        """Validate rates are non-negative integers and divisors are positive."""
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{f.name} must be an integer, got {value!r}")
            if f.name in _DIVISOR_FIELDS:
                if value <= 0:
                    raise DivisionByZero(f"{f.name} must be > 0, got {value}")
            elif value < 0:
                raise ValueError(f"{f.name} must be >= 0, got {value}")

    def rent_rate_denominator(self, is_persistent: bool) -> int:
        """Storage denominator for the entry's durability class."""
        if is_persistent:
            return self.persistent_rent_rate_denominator
        return self.temporary_rent_rate_denominator


@dataclass(frozen=True)
class TtlDefaults:
    """Minimum lifetimes, in ledgers, granted to newly created entries."""
    min_persistent_ttl: int = 4_096
    min_temporary_ttl: int = 16

    def __post_init__(self):
        """Validate TTL minimums."""
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"{f.name} must be a non-negative integer, got {value!r}")

    def default_live_until(self, is_persistent: bool, current_ledger: int) -> int:
        """Live-until ledger assumed for an entry with no TTL record."""
        if is_persistent:
            return current_ledger + self.min_persistent_ttl
        return current_ledger + self.min_temporary_ttl


@dataclass(frozen=True)
class FeeSchedule:
    """A named pairing of rates and TTL minimums for one network."""
    name: str = "default"
    rates: FeeRateTable = field(default_factory=FeeRateTable)
    ttl: TtlDefaults = field(default_factory=TtlDefaults)


DEFAULT_RATE_TABLE = FeeRateTable()
DEFAULT_TTL = TtlDefaults()
DEFAULT_SCHEDULE = FeeSchedule(name="default", rates=DEFAULT_RATE_TABLE, ttl=DEFAULT_TTL)

"""
Resource usage and ledger entry change records.

Value types supplied to the fee calculators.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Mapping, Optional

from .errors import InvalidUsage


def _require_counter(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidUsage(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidUsage(f"{name} must be >= 0, got {value}")


@dataclass(frozen=True)
class ResourceUsage:
    """Resource counters for a single transaction.

    All counters are exact, non-negative integers. Validation happens on
    construction so that a calculator never sees a bad value.
    """
    cpu_instructions: int = 0
    ledger_entries_read: int = 0
    ledger_entries_written: int = 0
    bytes_read: int = 0
    bytes_written: int = 0
    transaction_size_bytes: int = 0
    events_and_return_bytes: int = 0

    def __post_init__(self):
        """Validate every counter is a non-negative integer."""
        for f in fields(self):
            _require_counter(f.name, getattr(self, f.name))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ResourceUsage":
        """Build usage from loosely typed input such as form fields or YAML.

        Missing and blank keys default to 0. Integer strings are accepted.

        Args:
            data: Mapping of counter name to value

        Returns:
            Validated ResourceUsage

        Raises:
            InvalidUsage: On unknown keys, non-numeric or negative values
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data.keys()) - known
        if unknown:
            raise InvalidUsage(f"Unknown usage keys: {sorted(unknown)}")

        values = {}
        for name in known:
            raw = data.get(name)
            if raw is None or raw == "":
                values[name] = 0
                continue
            if isinstance(raw, str):
                try:
                    raw = int(raw.strip())
                except ValueError:
                    raise InvalidUsage(f"{name} must be an integer, got {raw!r}")
            values[name] = raw
        return cls(**values)


class EntryChangeType(Enum):
    """Lifecycle of a ledger entry within a transaction."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True)
class LedgerEntryRentChange:
    """Size and lifetime of one ledger entry before and after a transaction.

    A zero old size together with a zero old live-until ledger marks an
    entry that did not exist before.
    """
    is_persistent: bool
    old_size_bytes: int
    new_size_bytes: int
    old_live_until_ledger: int
    new_live_until_ledger: int
    entry_type: EntryChangeType = EntryChangeType.UPDATED
    key: Optional[str] = None

    def __post_init__(self):
        """Validate sizes and ledgers."""
        for name in (
            "old_size_bytes",
            "new_size_bytes",
            "old_live_until_ledger",
            "new_live_until_ledger",
        ):
            _require_counter(name, getattr(self, name))
        if not isinstance(self.entry_type, EntryChangeType):
            raise InvalidUsage(f"entry_type must be an EntryChangeType, got {self.entry_type!r}")

    @property
    def is_new(self) -> bool:
        """True when the entry did not exist before the transaction."""
        return self.old_size_bytes == 0 and self.old_live_until_ledger == 0

    @property
    def is_deleted(self) -> bool:
        return self.entry_type == EntryChangeType.DELETED

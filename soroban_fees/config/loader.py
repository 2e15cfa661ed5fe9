"""
Configuration management and loading.

Loads fee schedules, usage counters and rent change batches from YAML files.
"""

from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from soroban_fees.core.errors import InvalidUsage
from soroban_fees.core.rates import DEFAULT_SCHEDULE, FeeRateTable, FeeSchedule, TtlDefaults
from soroban_fees.core.usage import EntryChangeType, LedgerEntryRentChange, ResourceUsage


def _read_yaml(path: str, kind: str) -> Any:
    """Read a YAML document, failing loudly on missing files and bad YAML."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"{kind} file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in {kind.lower()} file {path}: {e}")

    if not raw:
        raise ValueError(f"{kind} file is empty")
    return raw


def load_fee_schedule(path: str) -> FeeSchedule:
    """Load and validate a fee schedule from a YAML file.

    Rates and TTL minimums not listed in the file keep their default
    values. Strict validation ensures a typo never silently falls back to
    a default rate.

    Args:
        path: Path to YAML fee schedule

    Returns:
        Validated FeeSchedule

    Raises:
        FileNotFoundError: If schedule file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If the schedule is invalid
        DivisionByZero: If an increment or rent denominator is zero
    """
    raw_config = _read_yaml(path, "Fee schedule")
    if not isinstance(raw_config, dict):
        raise ValueError("Fee schedule must be a dictionary")

    allowed_top_keys = {'name', 'rates', 'ttl'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown fee schedule keys: {unknown_keys}")

    name = raw_config.get('name', Path(path).stem)
    if not isinstance(name, str) or not name.strip():
        raise ValueError("'name' must be a non-empty string")

    rates = FeeRateTable(**_parse_int_section(
        raw_config.get('rates', {}), FeeRateTable, "rates"
    ))
    ttl = TtlDefaults(**_parse_int_section(
        raw_config.get('ttl', {}), TtlDefaults, "ttl"
    ))

    return FeeSchedule(name=name, rates=rates, ttl=ttl)


def _parse_int_section(data: Any, target: type, path: str) -> Dict[str, int]:
    """Parse and validate a mapping of integer fields for a dataclass.

    Args:
        data: Section data
        target: Dataclass whose fields are allowed
        path: Path for error messages

    Returns:
        Field values present in the section

    Raises:
        ValueError: If the section is invalid
    """
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"'{path}' must be a dictionary")

    allowed_keys = {f.name for f in fields(target)}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

    values = {}
    for key, value in data.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"'{key}' in {path} must be an integer")
        if value < 0:
            raise ValueError(f"'{key}' in {path} must be >= 0")
        values[key] = value
    return values


def load_rent_changes(path: str) -> Tuple[List[LedgerEntryRentChange], Optional[int]]:
    """Load a batch of rent changes from a YAML file.

    The file is either a list of entries, or a mapping with an `entries`
    list and an optional `current_ledger`.

    Args:
        path: Path to YAML file

    Returns:
        Tuple of (changes, current_ledger or None)

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If an entry is invalid
    """
    raw = _read_yaml(path, "Rent changes")

    current_ledger = None
    if isinstance(raw, dict):
        allowed_top_keys = {'current_ledger', 'entries'}
        unknown_keys = set(raw.keys()) - allowed_top_keys
        if unknown_keys:
            raise ValueError(f"Unknown rent change keys: {unknown_keys}")
        if 'entries' not in raw:
            raise ValueError("Missing required 'entries' list")
        current_ledger = raw.get('current_ledger')
        if current_ledger is not None and (
            isinstance(current_ledger, bool) or not isinstance(current_ledger, int)
        ):
            raise ValueError("'current_ledger' must be an integer")
        raw = raw['entries']

    if not isinstance(raw, list):
        raise ValueError("Rent changes must be a list of entries")

    changes = [_parse_rent_change(entry, f"entries[{i}]") for i, entry in enumerate(raw)]
    return changes, current_ledger


def _parse_rent_change(data: Any, path: str) -> LedgerEntryRentChange:
    """Parse one rent change mapping."""
    if not isinstance(data, dict):
        raise ValueError(f"{path} must be a dictionary")

    required_keys = {
        'is_persistent', 'old_size_bytes', 'new_size_bytes',
        'old_live_until_ledger', 'new_live_until_ledger',
    }
    allowed_keys = required_keys | {'entry_type', 'key'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")
    missing_keys = required_keys - set(data.keys())
    if missing_keys:
        raise ValueError(f"Missing required keys in {path}: {sorted(missing_keys)}")

    if not isinstance(data['is_persistent'], bool):
        raise ValueError(f"'is_persistent' in {path} must be true or false")

    entry_type_str = data.get('entry_type', EntryChangeType.UPDATED.value)
    try:
        entry_type = EntryChangeType(str(entry_type_str).lower())
    except ValueError:
        valid_types = [t.value for t in EntryChangeType]
        raise ValueError(f"'entry_type' in {path} must be one of: {valid_types}")

    try:
        return LedgerEntryRentChange(
            is_persistent=data['is_persistent'],
            old_size_bytes=data['old_size_bytes'],
            new_size_bytes=data['new_size_bytes'],
            old_live_until_ledger=data['old_live_until_ledger'],
            new_live_until_ledger=data['new_live_until_ledger'],
            entry_type=entry_type,
            key=data.get('key'),
        )
    except InvalidUsage as e:
        raise ValueError(f"Invalid {path}: {e}")


def load_usage(path: str) -> ResourceUsage:
    """Load resource usage counters from a YAML mapping.

    Omitted or blank counters are 0; integer strings are accepted.

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If the mapping is invalid
    """
    raw = _read_yaml(path, "Usage")
    if not isinstance(raw, dict):
        raise ValueError("Usage file must be a dictionary of counters")
    try:
        return ResourceUsage.from_mapping(raw)
    except InvalidUsage as e:
        raise ValueError(f"{e} (in {path})")


def default_schedule() -> FeeSchedule:
    """Schedule used when no file is given."""
    return DEFAULT_SCHEDULE

"""
Shared fixtures: an in-memory codec and a representative simulation trace.
"""
import pytest

from soroban_fees.core.codec import DecodedEntry
from soroban_fees.core.trace import CostMetrics, SimulationTrace, StateChange

from fakes import RESOURCES, FakeCodec, b64


@pytest.fixture
def codec():
    """Codec knowing every snapshot used by `trace`."""
    return FakeCodec(
        entries={
            "new-persistent": DecodedEntry(is_persistent=True, size_bytes=150),
            "new-temporary": DecodedEntry(is_persistent=False, size_bytes=80, live_until_ledger=5100),
            "counter-before": DecodedEntry(is_persistent=True, size_bytes=100, live_until_ledger=7000),
            "counter-after": DecodedEntry(is_persistent=False, size_bytes=120, live_until_ledger=8000),
            "balance-before": DecodedEntry(is_persistent=True, size_bytes=200),
            "balance-after": DecodedEntry(is_persistent=True, size_bytes=220),
        },
        events={"contract-event": 100, "diagnostic-event": 0},
    )


@pytest.fixture
def trace():
    """Trace at ledger 5000 touching two new and two updated entries."""
    return SimulationTrace(
        cost=CostMetrics(cpu_instructions=1_500_000, memory_bytes=2048),
        resources=RESOURCES,
        latest_ledger=5000,
        events=("contract-event", "diagnostic-event"),
        results=(b64(20),),
        state_changes=(
            StateChange(type="created", after="new-persistent", key="new-p"),
            StateChange(type="created", after="new-temporary", key="new-t"),
            StateChange(type="updated", before="counter-before", after="counter-after", key="counter"),
            StateChange(type="updated", before="balance-before", after="balance-after", key="balance"),
            StateChange(type="deleted", before="counter-before", key="gone"),
        ),
        transaction_envelope=b64(600),
        declared_resource_fee=90000,
    )

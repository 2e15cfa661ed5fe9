"""
Simulation trace model.

A trace is the already-fetched result of a `simulateTransaction` call,
kept in encoded form until the normalizer asks a codec to decode it.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .codec import SnapshotCodec, TransactionResources
from .errors import MalformedEntrySnapshot, MalformedTrace

# Numeric change types used by older RPC servers
_NUMERIC_CHANGE_TYPES = {1: "created", 2: "updated", 3: "deleted"}


@dataclass(frozen=True)
class CostMetrics:
    """Execution cost reported by the simulator."""
    cpu_instructions: int
    memory_bytes: int = 0


@dataclass(frozen=True)
class StateChange:
    """One ledger entry touched by the simulated transaction."""
    type: str
    before: Optional[str] = None
    after: Optional[str] = None
    key: Optional[str] = None


@dataclass(frozen=True)
class SimulationTrace:
    """Raw simulation output, with encoded snapshots and events."""
    cost: Optional[CostMetrics]
    resources: Optional[TransactionResources]
    latest_ledger: int
    events: Tuple[str, ...] = ()
    results: Tuple[str, ...] = ()
    state_changes: Tuple[StateChange, ...] = ()
    transaction_envelope: str = ""
    declared_resource_fee: Optional[int] = None

    @classmethod
    def from_rpc_response(
        cls,
        response: Mapping[str, Any],
        transaction_envelope: str,
        codec: SnapshotCodec,
    ) -> "SimulationTrace":
        """Build a trace from a JSON-RPC `simulateTransaction` response.

        Args:
            response: Full JSON-RPC envelope or its bare `result` member
            transaction_envelope: Base64 transaction that was simulated
            codec: Codec used to decode the transaction data

        Returns:
            SimulationTrace

        Raises:
            MalformedTrace: If the simulation failed or required members are missing
        """
        if not isinstance(response, dict):
            raise MalformedTrace(
                f"Simulation response must be a JSON object, got {type(response).__name__}"
            )
        if "error" in response:
            raise MalformedTrace(f"Simulation request failed: {response['error']}")

        result = response.get("result", response)
        if not isinstance(result, dict):
            raise MalformedTrace("Simulation response has no result object")
        if result.get("error"):
            raise MalformedTrace(f"Simulation failed: {result['error']}")

        cost = result.get("cost")
        if not isinstance(cost, dict) or "cpuInsns" not in cost:
            raise MalformedTrace("Simulation result is missing cost metrics")

        transaction_data = result.get("transactionData")
        if not transaction_data:
            raise MalformedTrace("Simulation result is missing transactionData")
        try:
            resources, resource_fee = codec.decode_transaction_data(transaction_data)
        except MalformedEntrySnapshot as e:
            raise MalformedTrace(f"Cannot decode transactionData: {e}") from e

        if "latestLedger" not in result:
            raise MalformedTrace("Simulation result is missing latestLedger")

        return cls(
            cost=CostMetrics(
                cpu_instructions=_to_int(cost["cpuInsns"], "cost.cpuInsns"),
                memory_bytes=_to_int(cost.get("memBytes", 0), "cost.memBytes"),
            ),
            resources=resources,
            latest_ledger=_to_int(result["latestLedger"], "latestLedger"),
            events=tuple(_list_member(result, "events")),
            results=tuple(
                _result_xdr(raw, i) for i, raw in enumerate(_list_member(result, "results"))
            ),
            state_changes=tuple(
                _parse_state_change(raw, i)
                for i, raw in enumerate(_list_member(result, "stateChanges"))
            ),
            transaction_envelope=transaction_envelope,
            declared_resource_fee=resource_fee,
        )


def _to_int(value: Any, name: str) -> int:
    """RPC servers send 64-bit numbers as strings."""
    try:
        return int(value)
    except (TypeError, ValueError):
        raise MalformedTrace(f"'{name}' must be an integer, got {value!r}")


def _list_member(result: Dict[str, Any], name: str) -> List[Any]:
    value = result.get(name) or []
    if not isinstance(value, list):
        raise MalformedTrace(f"'{name}' must be a list, got {type(value).__name__}")
    return value


def _result_xdr(raw: Any, index: int) -> str:
    """Return value of one result; empty when the result carries none."""
    if not isinstance(raw, dict):
        raise MalformedTrace(f"results[{index}] must be an object, got {raw!r}")
    return raw.get("xdr") or ""


def _parse_state_change(raw: Any, index: int) -> StateChange:
    if not isinstance(raw, dict):
        raise MalformedTrace(f"stateChanges[{index}] must be an object, got {raw!r}")
    change_type = raw.get("type")
    if isinstance(change_type, int):
        change_type = _NUMERIC_CHANGE_TYPES.get(change_type, str(change_type))
    return StateChange(
        type=str(change_type).lower(),
        before=raw.get("before"),
        after=raw.get("after"),
        key=raw.get("key"),
    )

"""
Fee estimation from simulation traces.

Chains normalization and both calculators:

    trace -> normalize -> {usage, rent changes} -> fees -> ContractCosts

The pipeline is pure and deterministic for the same inputs. Entries that
cannot be decoded are reported instead of failing the estimate.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from .codec import SnapshotCodec
from .costs import ContractCosts, compute_contract_costs
from .normalizer import NormalizedTrace, normalize
from .rates import DEFAULT_SCHEDULE, FeeSchedule
from .trace import SimulationTrace

logger = logging.getLogger(__name__)


class SimulationStatus(Enum):
    """Whether every touched entry made it into the rent fee."""
    COMPLETE = auto()
    PARTIAL = auto()


@dataclass(frozen=True)
class SimulationResult:
    """Fee estimate for a simulated transaction."""
    costs: ContractCosts
    normalized: NormalizedTrace
    status: SimulationStatus
    declared_resource_fee: Optional[int] = None

    @property
    def resource_fee_delta(self) -> Optional[int]:
        """Computed resource fee minus the fee quoted by the simulator."""
        if self.declared_resource_fee is None:
            return None
        return self.costs.resource_fee - self.declared_resource_fee


def simulate_contract_costs(
    trace: SimulationTrace,
    codec: SnapshotCodec,
    schedule: FeeSchedule = DEFAULT_SCHEDULE,
    inclusion_fee: int = 0,
) -> SimulationResult:
    """
    Estimate the fees of a simulated transaction.

    Rent is computed at the simulator's latest ledger.

    Args:
        trace: Simulation trace
        codec: Codec for snapshots and events
        schedule: Rates and TTL minimums of the target network
        inclusion_fee: Already-resolved inclusion fee in stroops

    Returns:
        SimulationResult

    Raises:
        MalformedTrace: If the trace lacks cost metrics or resources
    """
    normalized = normalize(trace, codec, schedule.ttl)
    costs = compute_contract_costs(
        usage=normalized.usage,
        changes=normalized.changes,
        current_ledger_seq=normalized.latest_ledger,
        rates=schedule.rates,
        inclusion_fee=inclusion_fee,
    )

    status = SimulationStatus.PARTIAL if normalized.is_partial else SimulationStatus.COMPLETE
    if status == SimulationStatus.PARTIAL:
        logger.warning(
            "Rent fee excludes %d of %d state changes",
            len(normalized.skipped), len(trace.state_changes)
        )

    return SimulationResult(
        costs=costs,
        normalized=normalized,
        status=status,
        declared_resource_fee=trace.declared_resource_fee,
    )

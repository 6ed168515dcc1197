"""Event and snapshot data models for STAKE LIVE."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class RewardSample:
    """A single point in the reward window.

    Inside the window history `amount` is the increment observed since the
    previous poll, not the cumulative counter.
    """

    observed_at: int  # Unix epoch milliseconds
    amount: int  # Base units


@dataclass
class StakedToken:
    """Per stake-token breakdown (base-unit integer strings)."""

    token_id: str
    staked_amount: str = "0"
    reward_amount: str = "0"


@dataclass
class RewardTransfer:
    """Latest node reward paid into the wallet."""

    tx_hash: str
    value: str  # Display units, as reported by the transfer index
    block_number: int
    timestamp: int  # Unix epoch milliseconds (block time)


@dataclass
class StakeTransaction:
    """Most recent stake() / increaseStake() call from the wallet."""

    tx_hash: str
    method: str  # "stake" or "increaseStake"
    amount: str  # Base units
    token_id: Optional[str]  # None for stake(): the token is minted by the call
    block_number: int
    timestamp: int  # Unix epoch milliseconds (block time)


@dataclass
class ContractSnapshot:
    """On-chain counters for one wallet at one point in time.

    Numeric staking fields are base-unit integer strings so they survive
    JSON logging without precision loss. `balance` is already in display
    units (decimal string).
    """

    address: str
    balance: str = "0.0"
    token_ids: List[str] = field(default_factory=list)
    staked_amount: str = "0"
    earned_rewards: str = "0"
    total_staked: str = "0"
    reward_rate: str = "0"
    staked_tokens: List[StakedToken] = field(default_factory=list)
    latest_reward: Optional[RewardTransfer] = None
    last_stake: Optional[StakeTransaction] = None
    fetched_at: int = 0  # Unix epoch milliseconds
    success: bool = True
    error: Optional[str] = None


@dataclass
class RateStats:
    """Extrapolated trailing-window rates in display units."""

    per_minute: float = 0.0
    per_hour: float = 0.0
    per_day: float = 0.0


@dataclass
class FormattedStats:
    """Display strings for the dashboard."""

    session_total: str = "0"
    session_per_minute: str = "0"
    per_minute: str = "0"
    per_hour: str = "0"
    per_day: str = "0"


@dataclass
class RewardStats:
    """Session and trailing-window reward statistics.

    Float fields are display units for rendering. The *_units fields carry the
    exact base-unit values they were derived from.
    """

    session_total: float = 0.0
    session_duration_minutes: float = 0.0
    session_per_minute: float = 0.0
    current_rate: RateStats = field(default_factory=RateStats)
    formatted: FormattedStats = field(default_factory=FormattedStats)

    session_total_units: int = 0
    window_total_units: int = 0
    session_per_minute_units: int = 0
    per_minute_units: int = 0
    per_hour_units: int = 0
    per_day_units: int = 0
    window_samples: int = 0


@dataclass
class PollResult:
    """Combined view of one poll handed to the presentation layer."""

    snapshot: ContractSnapshot
    stats: RewardStats
    polled_at: int  # Unix epoch milliseconds
    session_start: int = 0  # Unix epoch milliseconds
    rollback: bool = False

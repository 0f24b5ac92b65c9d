"""Records kept by the generator controller and the store that holds them."""

from __future__ import annotations

from dataclasses import dataclass, field
from fractions import Fraction

from gaugevote.bps import BasicPoints
from gaugevote.errors import ContractError


@dataclass
class Config:
    """Main control configuration of the controller."""

    owner: str
    escrow_addr: str
    generator_addr: str
    factory_addr: str
    pools_limit: int
    blacklisted_voters_limit: int | None = None
    main_pool: str | None = None
    main_pool_min_alloc: Fraction = Fraction(0)


@dataclass(frozen=True)
class VotedPoolInfo:
    """Voting parameters of one pool at one period."""

    vxastro_amount: int = 0
    slope: int = 0


@dataclass
class TuneInfo:
    """Time of the last tuning and the allocation points it set."""

    tune_ts: int
    pool_alloc_points: list[tuple[str, int]] = field(default_factory=list)


@dataclass(frozen=True)
class UserInfoResponse:
    """A user's last votes as reported to callers."""

    vote_ts: int
    voting_power: int
    slope: int
    lock_end: int
    votes: tuple[tuple[str, int], ...]


@dataclass(frozen=True)
class UserInfo:
    """A user's last vote parameters."""

    vote_ts: int = 0
    voting_power: int = 0
    slope: int = 0
    lock_end: int = 0
    votes: tuple[tuple[str, BasicPoints], ...] = ()

    def into_response(self) -> UserInfoResponse:
        """Report the votes with plain integer basic points."""
        return UserInfoResponse(
            vote_ts=self.vote_ts,
            voting_power=self.voting_power,
            slope=self.slope,
            lock_end=self.lock_end,
            votes=tuple((pool, int(bps)) for pool, bps in self.votes),
        )


@dataclass
class Storage:
    """All persistent state of a controller.

    * ``pool_votes`` maps (period, pool) to the pool's voting parameters.
    * ``pools`` holds every pool whose voting power may be above zero.
    * ``pool_periods`` maps a pool to the periods that have saved results.
    * ``pool_slope_changes`` maps (pool, period) to a scheduled slope drop.
    * ``user_info`` maps a user address to the user's last vote.
    """

    config: Config | None = None
    tune_info: TuneInfo | None = None
    pool_votes: dict[tuple[int, str], VotedPoolInfo] = field(default_factory=dict)
    pools: set[str] = field(default_factory=set)
    pool_periods: dict[str, set[int]] = field(default_factory=dict)
    pool_slope_changes: dict[tuple[str, int], int] = field(default_factory=dict)
    user_info: dict[str, UserInfo] = field(default_factory=dict)

    def load_config(self) -> Config:
        """Return the configuration, raising if none was saved."""
        if self.config is None:
            raise ContractError("Config not found")
        return self.config

    def load_tune_info(self) -> TuneInfo:
        """Return the last tuning information, raising if none was saved."""
        if self.tune_info is None:
            raise ContractError("TuneInfo not found")
        return self.tune_info

    def save_pool_votes(self, period: int, pool_addr: str, info: VotedPoolInfo) -> None:
        """Store a pool's parameters for a period and record the period."""
        self.pool_periods.setdefault(pool_addr, set()).add(period)
        self.pool_votes[(period, pool_addr)] = info
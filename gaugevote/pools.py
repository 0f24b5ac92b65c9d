"""Pool voting arithmetic, pool registry and per-period pool bookkeeping."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from itertools import islice
from typing import Iterable, Iterator, Optional, Tuple

from gaugevote.bps import BasicPoints
from gaugevote.errors import ContractError, InvalidPoolNumberError
from gaugevote.state import Storage, VotedPoolInfo

WEEK = 7 * 86400
EPOCH_START = 1648512000
POOL_NUMBER_LIMIT = range(2, 101)

Changes = Tuple[BasicPoints, int, int, "Operation"]


def _checked_sub(lhs: int, rhs: int) -> int:
    if rhs > lhs:
        raise ContractError(f"Cannot subtract {rhs} from {lhs}")
    return lhs - rhs


def get_period(seconds: int) -> int:
    """Return the week number that a timestamp falls into."""
    if seconds < EPOCH_START:
        raise ContractError("Invalid time")
    return (seconds - EPOCH_START) // WEEK


def calc_voting_power(slope: int, voting_power: int, start_period: int, end_period: int) -> int:
    """Voting power at ``end_period`` given its value and slope at ``start_period``."""
    shift = slope * (end_period - start_period)
    return max(voting_power - shift, 0)


class Operation(enum.Enum):
    """How a vote changes a pool's slope and voting power."""

    ADD = "add"
    SUB = "sub"

    def calc_slope(self, cur_slope: int, slope: int, bps: BasicPoints) -> int:
        change = bps * slope
        if self is Operation.ADD:
            return cur_slope + change
        return _checked_sub(cur_slope, change)

    def calc_voting_power(self, cur_vp: int, vp: int, bps: BasicPoints) -> int:
        change = bps * vp
        if self is Operation.ADD:
            return cur_vp + change
        return max(cur_vp - change, 0)


@dataclass(frozen=True)
class PairInfo:
    """A trading pair known by its LP token."""

    liquidity_token: str
    asset_infos: tuple[str, str]
    pair_type: str


@dataclass
class PoolRegistry:
    """Pairs known to the system, with factory and generator restrictions."""

    pairs: dict[str, PairInfo] = field(default_factory=dict)
    registered: set[frozenset[str]] = field(default_factory=set)
    blocked_tokens: set[str] = field(default_factory=set)
    blacklisted_pair_types: set[str] = field(default_factory=set)

    def add_pair(self, pair: PairInfo, registered: bool = True) -> None:
        """Make a pair known, optionally registering it in the factory."""
        self.pairs[pair.liquidity_token] = pair
        if registered:
            self.registered.add(frozenset(pair.asset_infos))

    def pair_info_by_pool(self, pool_addr: str) -> PairInfo:
        """Return the pair whose LP token is ``pool_addr``."""
        try:
            return self.pairs[pool_addr]
        except KeyError:
            raise ContractError(f"Unknown LP token: {pool_addr}") from None

    def is_registered(self, asset_infos: Iterable[str]) -> bool:
        return frozenset(asset_infos) in self.registered


def filter_pools(
    registry: PoolRegistry,
    pools: Iterable[tuple[str, int]],
    pools_limit: int,
) -> list[tuple[str, int]]:
    """Keep pools that are known, registered and not blocked, up to ``pools_limit``."""

    def eligible() -> Iterator[tuple[str, int]]:
        for pool_addr, amount in pools:
            pair = registry.pairs.get(pool_addr)
            if pair is None or not registry.is_registered(pair.asset_infos):
                continue
            if pair.pair_type in registry.blacklisted_pair_types:
                continue
            if any(token in registry.blocked_tokens for token in pair.asset_infos[:2]):
                continue
            yield pair.liquidity_token, amount

    return list(islice(eligible(), pools_limit))


def fetch_last_pool_period(storage: Storage, period: int, pool_addr: str) -> Optional[int]:
    """Latest period before ``period`` that has a saved result for the pool."""
    earlier = [p for p in storage.pool_periods.get(pool_addr, ()) if p < period]
    return max(earlier, default=None)


def fetch_slope_changes(
    storage: Storage, pool_addr: str, last_period: int, period: int
) -> list[tuple[int, int]]:
    """Scheduled slope changes in ``(last_period, period]``, in ascending order."""
    return sorted(
        (p, change)
        for (pool, p), change in storage.pool_slope_changes.items()
        if pool == pool_addr and last_period < p <= period
    )


def _compute_pool_info(
    storage: Storage, period: int, pool_addr: str, save: bool
) -> tuple[VotedPoolInfo, bool]:
    """Pool info at ``period`` and whether it was freshly computed."""
    stored = storage.pool_votes.get((period, pool_addr))
    if stored is not None:
        return stored, False

    prev_period = fetch_last_pool_period(storage, period, pool_addr)
    if prev_period is None:
        return VotedPoolInfo(), True

    info = storage.pool_votes[(prev_period, pool_addr)]
    for recalc_period, change in fetch_slope_changes(storage, pool_addr, prev_period, period):
        info = VotedPoolInfo(
            vxastro_amount=calc_voting_power(
                info.slope, info.vxastro_amount, prev_period, recalc_period
            ),
            slope=_checked_sub(info.slope, change),
        )
        if save:
            storage.save_pool_votes(recalc_period, pool_addr, info)
        prev_period = recalc_period

    info = replace(
        info,
        vxastro_amount=calc_voting_power(info.slope, info.vxastro_amount, prev_period, period),
    )
    return info, True


def get_pool_info(storage: Storage, period: int, pool_addr: str) -> VotedPoolInfo:
    """Pool info at ``period``, computed without touching storage."""
    return _compute_pool_info(storage, period, pool_addr, save=False)[0]


def update_pool_info(
    storage: Storage,
    period: int,
    pool_addr: str,
    changes: Optional[Changes] = None,
) -> VotedPoolInfo:
    """Compute pool info at ``period``, apply ``changes`` and save the result."""
    storage.pools.add(pool_addr)
    info, is_new = _compute_pool_info(storage, period, pool_addr, save=True)
    if changes is not None:
        bps, vp, slope, op = changes
        info = VotedPoolInfo(
            vxastro_amount=op.calc_voting_power(info.vxastro_amount, vp, bps),
            slope=op.calc_slope(info.slope, slope, bps),
        )
        storage.save_pool_votes(period, pool_addr, info)
    elif is_new:
        storage.save_pool_votes(period, pool_addr, info)
    return info


def cancel_user_changes(
    storage: Storage,
    period: int,
    pool_addr: str,
    old_bps: BasicPoints,
    old_vp: int,
    old_slope: int,
    old_lock_end: int,
) -> None:
    """Remove a user's earlier vote from a pool, starting at ``period``."""
    last_pool_period = fetch_last_pool_period(storage, period, pool_addr)
    if last_pool_period is None:
        last_pool_period = period
    end_period_key = old_lock_end + 1
    if last_pool_period < end_period_key:
        key = (pool_addr, end_period_key)
        try:
            scheduled = storage.pool_slope_changes[key]
        except KeyError:
            raise ContractError("Scheduled slope change not found") from None
        new_slope = _checked_sub(scheduled, old_bps * old_slope)
        if new_slope:
            storage.pool_slope_changes[key] = new_slope
        else:
            del storage.pool_slope_changes[key]

    update_pool_info(storage, period, pool_addr, (old_bps, old_vp, old_slope, Operation.SUB))


def vote_for_pool(
    storage: Storage,
    period: int,
    pool_addr: str,
    bps: BasicPoints,
    vp: int,
    slope: int,
    lock_end: int,
) -> None:
    """Apply a user's vote to a pool, starting at ``period``."""
    key = (pool_addr, lock_end + 1)
    storage.pool_slope_changes[key] = storage.pool_slope_changes.get(key, 0) + bps * slope
    update_pool_info(storage, period, pool_addr, (bps, vp, slope, Operation.ADD))


def validate_pools_limit(number: int) -> int:
    """Return ``number`` if it is a valid pools limit."""
    if number not in POOL_NUMBER_LIMIT:
        raise InvalidPoolNumberError(number)
    return number
"""The generator controller: vote escrow holders steer pool allocation points."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from fractions import Fraction
from typing import Iterable, Optional

from gaugevote.bps import BasicPoints
from gaugevote.errors import (
    ContractError,
    CooldownError,
    DuplicatedPoolsError,
    DuplicatedVotersError,
    InvalidLPTokenAddressError,
    KickVotersLimitExceededError,
    MainPoolMinAllocError,
    MainPoolVoteProhibitedError,
    MigrationError,
    TuneNoPoolsError,
    Unauthorized,
    ZeroVotingPowerError,
)
from gaugevote.pools import (
    WEEK,
    PoolRegistry,
    calc_voting_power,
    cancel_user_changes,
    filter_pools,
    get_period,
    get_pool_info,
    update_pool_info,
    validate_pools_limit,
    vote_for_pool,
)
from gaugevote.state import (
    Config,
    Storage,
    TuneInfo,
    UserInfo,
    UserInfoResponse,
    VotedPoolInfo,
)

DAY = 86400
VOTE_COOLDOWN = DAY * 10
TUNE_COOLDOWN = WEEK * 2
VOTERS_MAX_LIMIT = 30

_DECIMAL_PRECISION = 10**18


def _validate_addr(addr: str) -> str:
    """Check an address is a non-empty trimmed string and return it lower cased."""
    if not isinstance(addr, str) or not addr or addr != addr.strip():
        raise ContractError(f"Invalid address: {addr!r}")
    return addr.lower()


def _to_fraction(value) -> Fraction:
    if isinstance(value, (Fraction, Decimal, int, str)):
        return Fraction(value)
    raise TypeError(f"unsupported allocation value: {value!r}")


@dataclass(frozen=True)
class LockInfo:
    """A user's lock in the voting escrow."""

    voting_power: int
    slope: int
    end: int


@dataclass
class VotingEscrow:
    """Voting power, locks and blacklist of vote escrow holders."""

    locks: dict[str, LockInfo] = field(default_factory=dict)
    blacklisted: set[str] = field(default_factory=set)

    def set_lock(self, user: str, voting_power: int, slope: int, end: int) -> None:
        """Record or replace a user's lock."""
        self.locks[user] = LockInfo(voting_power=voting_power, slope=slope, end=end)

    def get_voting_power(self, user: str) -> int:
        lock = self.locks.get(user)
        return 0 if lock is None else lock.voting_power

    def get_lock_info(self, user: str) -> LockInfo:
        try:
            return self.locks[user]
        except KeyError:
            raise ContractError(f"User {user} has no lock") from None

    def check_voters_are_blacklisted(self, voters: Iterable[str]) -> Optional[str]:
        """Return None if every voter is blacklisted, otherwise the reason why not."""
        for voter in voters:
            if voter not in self.blacklisted:
                return f"Voter is not blacklisted: {voter}"
        return None


class GeneratorController:
    """Collects pool votes and turns them into generator allocation points."""

    def __init__(self, owner, escrow, registry, pools_limit, now):
        self.escrow: VotingEscrow = escrow
        self.registry: PoolRegistry = registry
        self.storage = Storage(
            config=Config(
                owner=_validate_addr(owner),
                escrow_addr="voting_escrow",
                generator_addr="generator",
                factory_addr="factory",
                pools_limit=validate_pools_limit(pools_limit),
            ),
            # The first tuning can happen only after a full cooldown.
            tune_info=TuneInfo(tune_ts=now),
        )

    @property
    def config(self) -> Config:
        return self.storage.load_config()

    def _ensure_owner(self, sender: str) -> Config:
        config = self.storage.load_config()
        if sender != config.owner:
            raise Unauthorized()
        return config

    def _cancel_votes(self, user_info: UserInfo, block_period: int, last_vote_period: int) -> None:
        old_vp = calc_voting_power(
            user_info.slope, user_info.voting_power, last_vote_period, block_period
        )
        for pool_addr, bps in user_info.votes:
            cancel_user_changes(
                self.storage,
                block_period + 1,
                pool_addr,
                bps,
                old_vp,
                user_info.slope,
                user_info.lock_end,
            )

    def vote(self, sender, votes, now):
        """Replace the sender's votes with ``votes``: pairs of pool and basic points."""
        votes = list(votes)
        block_period = get_period(now)
        config = self.storage.load_config()
        user_vp = self.escrow.get_voting_power(sender)
        if user_vp == 0:
            raise ZeroVotingPowerError()

        user_info = self.storage.user_info.get(sender, UserInfo())
        if now - user_info.vote_ts < VOTE_COOLDOWN:
            raise CooldownError(VOTE_COOLDOWN // DAY)

        if len({addr for addr, _ in votes}) != len(votes):
            raise DuplicatedPoolsError()

        validated: list[tuple[str, BasicPoints]] = []
        for raw_addr, raw_bps in votes:
            addr = _validate_addr(raw_addr)
            if config.main_pool is not None and addr == config.main_pool:
                raise MainPoolVoteProhibitedError(config.main_pool)
            try:
                self.registry.pair_info_by_pool(addr)
            except ContractError:
                raise InvalidLPTokenAddressError(addr) from None
            validated.append((addr, BasicPoints(raw_bps)))

        total = BasicPoints()
        for _, bps in validated:
            total = total.checked_add(bps)

        if user_info.lock_end > block_period:
            try:
                last_vote_period = get_period(user_info.vote_ts)
            except ContractError:
                last_vote_period = block_period
            self._cancel_votes(user_info, block_period, last_vote_period)

        lock = self.escrow.get_lock_info(sender)
        for pool_addr, bps in validated:
            vote_for_pool(
                self.storage, block_period + 1, pool_addr, bps, user_vp, lock.slope, lock.end
            )

        self.storage.user_info[sender] = UserInfo(
            vote_ts=now,
            voting_power=user_vp,
            slope=lock.slope,
            lock_end=lock.end,
            votes=tuple(validated),
        )

    def tune_pools(self, now) -> list[tuple[str, int]]:
        """Compute allocation points for the top pools and return them."""
        tune_info = self.storage.load_tune_info()
        config = self.storage.load_config()
        block_period = get_period(now)

        if now - tune_info.tune_ts < TUNE_COOLDOWN:
            raise CooldownError(TUNE_COOLDOWN // DAY)

        pool_votes = []
        for pool_addr in sorted(self.storage.pools):
            info = update_pool_info(self.storage, block_period, pool_addr)
            if info.vxastro_amount == 0:
                self.storage.pools.discard(pool_addr)
            else:
                pool_votes.append((pool_addr, info.vxastro_amount))
        pool_votes.sort(key=lambda item: item[1], reverse=True)

        # One extra pool in case the main pool has to be taken out.
        alloc_points = filter_pools(self.registry, pool_votes, config.pools_limit + 1)

        main_pool = config.main_pool
        min_alloc = config.main_pool_min_alloc
        if main_pool is not None and min_alloc != 0:
            alloc_points = [item for item in alloc_points if item[0] != main_pool]
            alloc_points = alloc_points[: config.pools_limit]
            total_vp = sum(vp for _, vp in alloc_points)
            # x = alloc * VP / (1 - alloc), so the main pool gets ``alloc`` of the new total.
            inverse = Fraction(
                math.floor(_DECIMAL_PRECISION / (1 - min_alloc)), _DECIMAL_PRECISION
            )
            contribution = math.floor(math.floor(min_alloc * total_vp) * inverse)
            alloc_points.append((main_pool, contribution))
        else:
            alloc_points = alloc_points[: config.pools_limit]

        if not alloc_points:
            raise TuneNoPoolsError()

        tune_info.pool_alloc_points = alloc_points
        tune_info.tune_ts = now
        self.storage.tune_info = tune_info
        return list(alloc_points)

    def kick_blacklisted_voters(self, voters, now) -> None:
        """Remove every vote cast by the given blacklisted voters."""
        voters = list(voters)
        block_period = get_period(now)
        config = self.storage.load_config()

        limit = (
            VOTERS_MAX_LIMIT
            if config.blacklisted_voters_limit is None
            else config.blacklisted_voters_limit
        )
        if len(voters) > limit:
            raise KickVotersLimitExceededError()
        if len(set(voters)) != len(voters):
            raise DuplicatedVotersError()

        problem = self.escrow.check_voters_are_blacklisted(voters)
        if problem is not None:
            raise ContractError(problem)

        for voter in voters:
            voter_addr = _validate_addr(voter)
            user_info = self.storage.user_info.get(voter_addr)
            if user_info is None or user_info.lock_end <= block_period:
                continue
            self._cancel_votes(user_info, block_period, get_period(user_info.vote_ts))
            self.storage.user_info[voter_addr] = UserInfo(vote_ts=now, lock_end=block_period)

    def change_pools_limit(self, sender, limit) -> None:
        """Set how many pools may receive allocation points."""
        config = self._ensure_owner(sender)
        config.pools_limit = validate_pools_limit(limit)

    def update_config(
        self,
        sender,
        blacklisted_voters_limit=None,
        main_pool=None,
        main_pool_min_alloc=None,
        remove_main_pool=None,
    ) -> None:
        """Change the kick limit and the main pool settings."""
        config = self._ensure_owner(sender)
        updated = Config(**vars(config))

        if blacklisted_voters_limit is not None:
            updated.blacklisted_voters_limit = blacklisted_voters_limit

        if main_pool_min_alloc is not None:
            alloc = _to_fraction(main_pool_min_alloc)
            if alloc == 0 or alloc >= 1:
                raise MainPoolMinAllocError()
            updated.main_pool_min_alloc = alloc

        if main_pool is not None:
            if updated.main_pool_min_alloc == 0:
                raise ContractError("Main pool min alloc can not be zero")
            updated.main_pool = _validate_addr(main_pool)

        if remove_main_pool:
            updated.main_pool = None

        self.storage.config = updated

    def user_info(self, user) -> UserInfoResponse:
        """Return a user's last votes."""
        info = self.storage.user_info.get(_validate_addr(user))
        if info is None:
            raise ContractError("User not found")
        return info.into_response()

    def pool_info(self, pool_addr, now, period=None) -> VotedPoolInfo:
        """Return a pool's voting parameters at ``period``, or at the current one."""
        addr = _validate_addr(pool_addr)
        block_period = get_period(now)
        return get_pool_info(self.storage, block_period if period is None else period, addr)

    def migrate(self):
        raise MigrationError()
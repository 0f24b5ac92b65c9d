# gaugevote

`gaugevote` models a gauge-voting controller. Holders of vote-escrowed power
split that power over liquidity pools. A periodic *tune* then turns the votes
into allocation points for the pools with the most support. Voting power
decays linearly until each lock ends. The controller tracks per-pool slopes
and scheduled slope changes week by week, so it can work out a pool's weight
for any period.

The package needs nothing outside the standard library.

## Modules

- `gaugevote.bps`: `BasicPoints`, a whole-number share in `[0, 10000]`.
  - `checked_add` raises `BPSLimitError` when a sum would pass 10000.
  - `BasicPoints.from_ratio(numerator, denominator)` rounds down.
  - Multiplying by an `int` floors the result. Multiplying by a `Fraction` or
    `Decimal` gives a `Fraction` truncated to 18 decimal places.
- `gaugevote.errors`: `ContractError` and its subclasses. Every error the
  package raises for a rule violation is one of these.
- `gaugevote.state`: the records `Config`, `VotedPoolInfo`, `TuneInfo`,
  `UserInfo` and `UserInfoResponse`. Also the in-memory `Storage` that holds
  them.
- `gaugevote.pools`: the week-based arithmetic and the per-pool bookkeeping.
  - `get_period` and `calc_voting_power` do the week arithmetic.
  - `PairInfo` and `PoolRegistry` describe the known pairs and their
    restrictions.
  - `filter_pools`, `vote_for_pool`, `cancel_user_changes`,
    `update_pool_info`, `get_pool_info`, `fetch_last_pool_period`,
    `fetch_slope_changes` and `validate_pools_limit` do the per-pool
    bookkeeping.
- `gaugevote.controller`: `GeneratorController`, together with the
  `VotingEscrow` and `LockInfo` it reads voting power and locks from.

## Concepts

- **Periods**: time is counted in weeks from `gaugevote.pools.EPOCH_START`.
  `get_period(seconds)` raises `ContractError` for timestamps before it. Votes
  cast during period `p` take effect from period `p + 1`.
- **Pool registry** (`PoolRegistry`): the known pairs, looked up by LP token
  address, and whether each pair's assets are registered. It also holds the
  blocked tokens and the blacklisted pair types. A pool receives allocation
  points only if its pair is known, is registered, and is not blocked.
- **Voting escrow** (`VotingEscrow`): each user's voting power, slope and
  lock end (a period), set with `set_lock`. It also holds a `blacklisted` set
  of users.

## Usage

```python
from gaugevote.controller import GeneratorController, VotingEscrow
from gaugevote.pools import EPOCH_START, WEEK, PairInfo, PoolRegistry

registry = PoolRegistry()
registry.add_pair(PairInfo("pool_a", ("uluna", "uusd"), "xyk"))
registry.add_pair(PairInfo("pool_b", ("uatom", "uusd"), "xyk"))

escrow = VotingEscrow()
escrow.set_lock("alice", voting_power=1_000_000, slope=1_000, end=100)

controller = GeneratorController("owner", escrow, registry, pools_limit=5, now=EPOCH_START)

# Spend 60% of the voting power on one pool and 40% on another.
controller.vote("alice", [("pool_a", 6000), ("pool_b", 4000)], now=EPOCH_START)

controller.pool_info("pool_a", now=EPOCH_START, period=1)
# VotedPoolInfo(vxastro_amount=600000, slope=600)

# Two weeks or more after the last tune:
controller.tune_pools(now=EPOCH_START + 2 * WEEK)
# [('pool_a', 599400), ('pool_b', 399600)]

controller.user_info("alice").votes
# (('pool_a', 6000), ('pool_b', 4000))
```

Pool, owner and voter addresses are checked and lower-cased. They must be
non-empty and have no surrounding whitespace. Register LP tokens in the
registry under lower-case addresses.

### Rules enforced

- A user can vote at most once every 10 days. Pools can be tuned at most once
  every 14 days, counted from construction or the last tune. Both raise
  `CooldownError`.
- A vote must not name the same pool twice (`DuplicatedPoolsError`).
- Every pool in a vote must be a known LP token (`InvalidLPTokenAddressError`).
- The shares in a vote must add up to 10000 or less (`BPSLimitError`).
- A new vote replaces the user's previous votes.
- Users with zero voting power cannot vote (`ZeroVotingPowerError`).
- The pools limit must lie between 2 and 100 (`InvalidPoolNumberError`). Only
  the owner can change it, with `change_pools_limit`.
- Only the owner can call `update_config` (`Unauthorized`). It sets:
  - the kick limit, which defaults to 30;
  - a main pool and its guaranteed minimum share of allocation, which must be
    strictly between 0 and 1 (`MainPoolMinAllocError`);
  - `remove_main_pool=True` removes the main pool.
- Nobody can vote for the main pool directly (`MainPoolVoteProhibitedError`).
  At tuning, the main pool is added with enough points to hold its minimum
  share of the total.
- `kick_blacklisted_voters(voters, now)` removes the active votes of the
  given users. Every user must be blacklisted in the escrow. The list must
  have no duplicates (`DuplicatedVotersError`) and must stay within the limit
  (`KickVotersLimitExceededError`).
- If no eligible pool has voting power, `tune_pools` raises
  `TuneNoPoolsError`.
- `migrate()` always raises `MigrationError`.

## What it does not do

- State lives only in memory, in the controller's `Storage`. Nothing is saved
  to disk.
- `tune_pools` returns the allocation points and records them in
  `storage.tune_info`. It does not deliver them anywhere else.
- There is no transfer of ownership: the owner is fixed at construction.
- There is no command-line interface.

## Running the tests

```
pip install -e ".[test]"
pytest
```
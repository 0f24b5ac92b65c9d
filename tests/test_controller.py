from fractions import Fraction

import pytest

from gaugevote.bps import BasicPoints
from gaugevote.controller import (
    GeneratorController,
    LockInfo,
    VotingEscrow,
)
from gaugevote.errors import (
    BPSConversionError,
    BPSLimitError,
    ContractError,
    CooldownError,
    DuplicatedPoolsError,
    DuplicatedVotersError,
    InvalidLPTokenAddressError,
    InvalidPoolNumberError,
    KickVotersLimitExceededError,
    MainPoolMinAllocError,
    MainPoolVoteProhibitedError,
    MigrationError,
    TuneNoPoolsError,
    Unauthorized,
    ZeroVotingPowerError,
)
from gaugevote.pools import EPOCH_START, WEEK, PairInfo, PoolRegistry, get_period
from gaugevote.state import VotedPoolInfo

DAY = 86400
T0 = EPOCH_START + 10 * WEEK
FAR_END = get_period(T0) + 100


def make_registry():
    registry = PoolRegistry()
    registry.add_pair(PairInfo("lp1", ("a", "b"), "xyk"))
    registry.add_pair(PairInfo("lp2", ("a", "c"), "xyk"))
    registry.add_pair(PairInfo("lp3", ("b", "c"), "stable"))
    registry.add_pair(PairInfo("lp_main", ("c", "d"), "xyk"))
    return registry


def make_controller(pools_limit=5):
    escrow = VotingEscrow()
    escrow.set_lock("alice", 1000, 0, FAR_END)
    escrow.set_lock("bob", 700_000, 0, FAR_END)
    escrow.set_lock("carol", 2000, 0, FAR_END)
    return GeneratorController("owner", escrow, make_registry(), pools_limit, T0)


def test_init_rejects_invalid_pools_limit():
    with pytest.raises(InvalidPoolNumberError):
        GeneratorController("owner", VotingEscrow(), make_registry(), 1, T0)
    with pytest.raises(InvalidPoolNumberError):
        GeneratorController("owner", VotingEscrow(), make_registry(), 101, T0)


def test_init_stores_config():
    ctrl = make_controller(pools_limit=7)
    assert ctrl.config.pools_limit == 7
    assert ctrl.config.owner == "owner"
    assert ctrl.storage.tune_info.tune_ts == T0


def test_vote_with_zero_power():
    ctrl = make_controller()
    with pytest.raises(ZeroVotingPowerError):
        ctrl.vote("nobody", [("lp1", 100)], T0)


def test_vote_duplicated_pools():
    ctrl = make_controller()
    with pytest.raises(DuplicatedPoolsError):
        ctrl.vote("alice", [("lp1", 100), ("lp1", 200)], T0)


def test_vote_unknown_pool():
    ctrl = make_controller()
    with pytest.raises(InvalidLPTokenAddressError) as info:
        ctrl.vote("alice", [("unknown", 100)], T0)
    assert info.value.address == "unknown"


def test_vote_bps_limits():
    ctrl = make_controller()
    with pytest.raises(BPSLimitError):
        ctrl.vote("alice", [("lp1", 6000), ("lp2", 5000)], T0)
    with pytest.raises(BPSConversionError):
        ctrl.vote("alice", [("lp1", 10001)], T0)


def test_vote_is_recorded_and_lowercased():
    ctrl = make_controller()
    ctrl.vote("alice", [("LP1", 6000), ("lp2", 4000)], T0)
    info = ctrl.user_info("alice")
    assert info.votes == (("lp1", 6000), ("lp2", 4000))
    assert info.voting_power == 1000
    assert info.vote_ts == T0
    assert info.lock_end == FAR_END


def test_vote_cooldown():
    ctrl = make_controller()
    ctrl.vote("alice", [("lp1", 10000)], T0)
    with pytest.raises(CooldownError) as info:
        ctrl.vote("alice", [("lp2", 10000)], T0 + 9 * DAY)
    assert info.value.days == 10


def test_vote_applies_to_next_period():
    ctrl = make_controller()
    ctrl.vote("alice", [("lp1", 10000)], T0)
    period = get_period(T0)
    assert ctrl.pool_info("lp1", T0) == VotedPoolInfo()
    assert ctrl.pool_info("lp1", T0, period + 1).vxastro_amount == 1000


def test_split_vote_keeps_total_power():
    ctrl = make_controller()
    ctrl.vote("alice", [("lp1", 5000), ("lp2", 5000)], T0)
    period = get_period(T0) + 1
    total = sum(ctrl.pool_info(p, T0, period).vxastro_amount for p in ("lp1", "lp2"))
    assert total == 1000


def test_revote_moves_power():
    ctrl = make_controller()
    ctrl.vote("alice", [("lp1", 10000)], T0)
    later = T0 + 11 * DAY
    ctrl.vote("alice", [("lp2", 10000)], later)
    next_period = get_period(later) + 1
    assert ctrl.pool_info("lp1", later, next_period) == VotedPoolInfo()
    assert ctrl.pool_info("lp2", later, next_period).vxastro_amount == 1000
    assert ctrl.user_info("alice").votes == (("lp2", 10000),)


def test_voting_power_decays_to_zero_after_lock_end():
    escrow = VotingEscrow()
    period = get_period(T0)
    escrow.set_lock("dave", 1000, 100, period + 10)
    ctrl = GeneratorController("owner", escrow, make_registry(), 5, T0)
    ctrl.vote("dave", [("lp1", 10000)], T0)
    assert ctrl.pool_info("lp1", T0, period + 1) == VotedPoolInfo(1000, 100)
    assert ctrl.pool_info("lp1", T0, period + 11) == VotedPoolInfo()


def test_tune_cooldown():
    ctrl = make_controller()
    with pytest.raises(CooldownError) as info:
        ctrl.tune_pools(T0 + DAY)
    assert info.value.days == 14


def test_tune_without_pools():
    ctrl = make_controller()
    with pytest.raises(TuneNoPoolsError):
        ctrl.tune_pools(T0 + 2 * WEEK)


def test_tune_orders_by_voting_power():
    ctrl = make_controller()
    ctrl.vote("alice", [("lp2", 4000), ("lp1", 6000)], T0)
    now = T0 + 2 * WEEK
    result = ctrl.tune_pools(now)
    assert result == [
        ("lp1", ctrl.pool_info("lp1", now).vxastro_amount),
        ("lp2", ctrl.pool_info("lp2", now).vxastro_amount),
    ]
    assert result[0][1] >= result[1][1]
    assert ctrl.storage.tune_info.tune_ts == now
    assert ctrl.storage.tune_info.pool_alloc_points == result
    with pytest.raises(CooldownError):
        ctrl.tune_pools(now + DAY)


def test_tune_respects_pools_limit():
    ctrl = make_controller(pools_limit=2)
    ctrl.vote("alice", [("lp1", 5000), ("lp2", 3000), ("lp3", 2000)], T0)
    result = ctrl.tune_pools(T0 + 2 * WEEK)
    assert [pool for pool, _ in result] == ["lp1", "lp2"]


def test_tune_skips_blocked_tokens():
    ctrl = make_controller()
    ctrl.registry.blocked_tokens.add("c")
    ctrl.vote("alice", [("lp1", 5000), ("lp2", 3000), ("lp3", 2000)], T0)
    result = ctrl.tune_pools(T0 + 2 * WEEK)
    assert [pool for pool, _ in result] == ["lp1"]


def test_main_pool_vote_prohibited():
    ctrl = make_controller()
    ctrl.update_config("owner", main_pool_min_alloc=Fraction(3, 10), main_pool="lp_main")
    with pytest.raises(MainPoolVoteProhibitedError):
        ctrl.vote("alice", [("lp_main", 100)], T0)


def test_main_pool_gets_min_share():
    ctrl = make_controller()
    ctrl.update_config("owner", main_pool_min_alloc="0.3", main_pool="lp_main")
    ctrl.vote("bob", [("lp1", 10000)], T0)
    result = ctrl.tune_pools(T0 + 2 * WEEK)
    assert [pool for pool, _ in result] == ["lp1", "lp_main"]
    others = result[0][1]
    main = result[1][1]
    assert abs(Fraction(main, others + main) - Fraction(3, 10)) < Fraction(1, 100)


def test_update_config_checks():
    ctrl = make_controller()
    with pytest.raises(Unauthorized):
        ctrl.update_config("alice", blacklisted_voters_limit=3)
    with pytest.raises(MainPoolMinAllocError):
        ctrl.update_config("owner", main_pool_min_alloc=0)
    with pytest.raises(MainPoolMinAllocError):
        ctrl.update_config("owner", main_pool_min_alloc=1)
    with pytest.raises(ContractError, match="Main pool min alloc can not be zero"):
        ctrl.update_config("owner", main_pool="lp_main")


def test_update_config_sets_and_removes_main_pool():
    ctrl = make_controller()
    ctrl.update_config(
        "owner", blacklisted_voters_limit=3, main_pool="LP_MAIN", main_pool_min_alloc="0.2"
    )
    assert ctrl.config.main_pool == "lp_main"
    assert ctrl.config.main_pool_min_alloc == Fraction(1, 5)
    assert ctrl.config.blacklisted_voters_limit == 3
    ctrl.update_config("owner", remove_main_pool=True)
    assert ctrl.config.main_pool is None


def test_change_pools_limit():
    ctrl = make_controller()
    with pytest.raises(Unauthorized):
        ctrl.change_pools_limit("alice", 10)
    with pytest.raises(InvalidPoolNumberError):
        ctrl.change_pools_limit("owner", 200)
    ctrl.change_pools_limit("owner", 10)
    assert ctrl.config.pools_limit == 10


def test_kick_limits_and_duplicates():
    ctrl = make_controller()
    ctrl.escrow.blacklisted.update({"alice", "bob"})
    ctrl.update_config("owner", blacklisted_voters_limit=1)
    with pytest.raises(KickVotersLimitExceededError):
        ctrl.kick_blacklisted_voters(["alice", "bob"], T0)
    ctrl.update_config("owner", blacklisted_voters_limit=5)
    with pytest.raises(DuplicatedVotersError):
        ctrl.kick_blacklisted_voters(["alice", "alice"], T0)


def test_kick_requires_blacklisted():
    ctrl = make_controller()
    with pytest.raises(ContractError, match="carol"):
        ctrl.kick_blacklisted_voters(["carol"], T0)


def test_kick_removes_votes():
    ctrl = make_controller()
    ctrl.vote("alice", [("lp1", 10000)], T0)
    ctrl.vote("carol", [("lp2", 10000)], T0)
    ctrl.escrow.blacklisted.add("alice")
    now = T0 + DAY
    ctrl.kick_blacklisted_voters(["alice"], now)
    period = get_period(now)
    info = ctrl.user_info("alice")
    assert info.votes == ()
    assert info.lock_end == period
    assert info.vote_ts == now
    assert ctrl.pool_info("lp1", now, period + 1) == VotedPoolInfo()

    result = ctrl.tune_pools(T0 + 2 * WEEK)
    assert [pool for pool, _ in result] == ["lp2"]
    assert "lp1" not in ctrl.storage.pools


def test_user_info_not_found():
    ctrl = make_controller()
    with pytest.raises(ContractError, match="User not found"):
        ctrl.user_info("nobody")


def test_migrate_fails():
    ctrl = make_controller()
    with pytest.raises(MigrationError, match="Contract can't be migrated!"):
        ctrl.migrate()


def test_escrow_lock_info():
    escrow = VotingEscrow()
    escrow.set_lock("erin", 50, 5, FAR_END)
    assert escrow.get_lock_info("erin") == LockInfo(50, 5, FAR_END)
    assert escrow.get_voting_power("frank") == 0
    with pytest.raises(ContractError):
        escrow.get_lock_info("frank")


def test_bps_stored_in_user_record():
    ctrl = make_controller()
    ctrl.vote("alice", [("lp3", 2500)], T0)
    assert ctrl.storage.user_info["alice"].votes == (("lp3", BasicPoints(2500)),)
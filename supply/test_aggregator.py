import pytest

from conftest import DAY, TGE, FakeChainClient, addr, make_chain, make_context
from supply.aggregator import SupplyAggregator, net_circulating
from supply.errors import DecodeError, TransportError
from supply.models import ExcludedAddress, OffchainPoolEntry, OnchainPool, PoolAlias

def test_net_circulating_clamps_each_step():
    assert net_circulating(1_000, 200, 300) == 500
    assert net_circulating(1_000_000, 1_200_000, 0) == 0
    assert net_circulating(1_000, 1_500, 10) == 0
    assert net_circulating(-5, 0, 0) == 0

def test_total_supply_subtracts_burn():
    context = make_context()
    client = FakeChainClient(total_supply=1_000, balances={addr(0): 100})
    assert SupplyAggregator(context, {"primary": client}).get_total_supply() == 900

def test_total_supply_never_negative():
    context = make_context()
    client = FakeChainClient(total_supply=100, balances={addr(0): 500})
    assert SupplyAggregator(context, {"primary": client}).get_total_supply() == 0

def test_excluded_balance_above_total_clamps_to_zero():
    context = make_context(excluded=[ExcludedAddress(addr(1), "primary")])
    client = FakeChainClient(total_supply=1_000_000, balances={addr(1): 1_200_000})
    snapshot = SupplyAggregator(context, {"primary": client}).get_snapshot()
    assert snapshot.excluded_balance == 1_200_000
    assert snapshot.circulating_supply == 0

def test_pool_in_excluded_list_counted_once_as_locked():
    context = make_context(
        excluded=[ExcludedAddress(addr(1), "primary"), ExcludedAddress(addr(10), "primary")],
        onchain_pools=[OnchainPool(addr(10), True, "primary")]
    )
    client = FakeChainClient(total_supply=10_000, balances={addr(1): 1_000, addr(10): 3_000})
    snapshot = SupplyAggregator(context, {"primary": client}).get_snapshot()

    assert snapshot.excluded_balance == 1_000
    assert snapshot.locked_balance == 3_000
    assert snapshot.circulating_supply == 6_000

def test_circulating_supply_nets_every_balance():
    offchain = OffchainPoolEntry(
        aliases=(PoolAlias(addr(20), "primary"),),
        tge_percentage=10, cliff_days=30, vesting_days=90,
        vesting_type="linear", balance_at_tge=1_000_000, name="team"
    )
    context = make_context(
        excluded=[ExcludedAddress(addr(1), "primary")],
        onchain_pools=[OnchainPool(addr(10), False, "primary"), OnchainPool(addr(11), True, "primary")],
        offchain_pools=[offchain]
    )
    client = FakeChainClient(
        total_supply=10_000_000,
        balances={addr(0): 500_000, addr(1): 1_000_000, addr(11): 250_000},
        pool_params={addr(10): (2_000_000, 30 * DAY, 90 * DAY, 10**6)},
        block=(42, TGE + 60 * DAY)
    )
    snapshot = SupplyAggregator(context, {"primary": client}).get_snapshot()

    # team: 433_333 / 10^6 unlocked, on-chain pool: 30 of 90 days vested
    team_locked = 1_000_000 - 1_000_000 * 433_333 // 10**6
    pool_locked = 2_000_000 - 2_000_000 * 333_333 // 10**6
    assert snapshot.total_supply == 9_500_000
    assert snapshot.burn_balance == 500_000
    assert snapshot.excluded_balance == 1_000_000
    assert snapshot.locked_balance == team_locked + pool_locked + 250_000
    assert snapshot.circulating_supply == 9_500_000 - 1_000_000 - snapshot.locked_balance
    assert snapshot.blocks == {"primary": 42}
    assert snapshot.timestamp == TGE + 60 * DAY
    assert [pool.source for pool in snapshot.pools] == ["offchain", "onchain", "reserved"]
    assert snapshot.warnings == []

def test_batch_is_pinned_to_observed_block():
    context = make_context()
    client = FakeChainClient(total_supply=1, block=(1234, TGE))
    SupplyAggregator(context, {"primary": client}).get_snapshot()
    assert client.batches[0][1] == 1234

def test_onchain_pool_start_overrides_tge():
    context = make_context(onchain_pools=[OnchainPool(addr(10), False, "primary", start_timestamp=TGE + 100 * DAY)])
    client = FakeChainClient(
        total_supply=10**9,
        pool_params={addr(10): (1_000, 10 * DAY, 10 * DAY, 10**6)},
        block=(1, TGE + 100 * DAY)
    )
    snapshot = SupplyAggregator(context, {"primary": client}).get_snapshot()
    assert snapshot.locked_balance == 1_000
    assert snapshot.pools[0].vesting.days_passed == 0

def test_invalid_pool_is_skipped_with_warning():
    context = make_context(onchain_pools=[OnchainPool(addr(10), False, "primary")])
    client = FakeChainClient(total_supply=5_000, pool_params={addr(10): (1_000, 0, DAY, 1)})
    snapshot = SupplyAggregator(context, {"primary": client}).get_snapshot()
    assert snapshot.locked_balance == 0
    assert snapshot.circulating_supply == 5_000
    assert len(snapshot.warnings) == 1
    assert addr(10) in snapshot.warnings[0]

def test_offchain_aliases_counted_once_across_chains():
    primary, secondary = make_chain("primary"), make_chain("secondary", units_per_day=172_800, token=0xBBBB)
    entry = OffchainPoolEntry(
        aliases=(PoolAlias(addr(20), "primary"), PoolAlias(addr(20), "secondary")),
        tge_percentage=0, cliff_days=365, vesting_days=365,
        vesting_type="stepped", balance_at_tge=700
    )
    context = make_context(
        chains=[primary, secondary],
        excluded=[ExcludedAddress(addr(20), "primary"), ExcludedAddress(addr(20), "secondary")],
        offchain_pools=[entry]
    )
    clients = {
        "primary": FakeChainClient(total_supply=1_000, balances={addr(20): 400}),
        "secondary": FakeChainClient(total_supply=500, balances={addr(20): 300}),
    }
    snapshot = SupplyAggregator(context, clients).get_snapshot()

    assert snapshot.total_supply == 1_500
    assert snapshot.excluded_balance == 0
    assert snapshot.locked_balance == 700
    assert snapshot.circulating_supply == 800
    assert snapshot.blocks == {"primary": 1000, "secondary": 1000}

def test_dual_chain_total_supply():
    primary, secondary = make_chain("primary"), make_chain("secondary", token=0xBBBB)
    context = make_context(chains=[primary, secondary])
    clients = {
        "primary": FakeChainClient(total_supply=1_000, balances={addr(0): 1_500}),
        "secondary": FakeChainClient(total_supply=2_000, balances={addr(0): 100}),
    }
    # burn larger than supply on one chain clamps that chain only
    assert SupplyAggregator(context, clients).get_total_supply() == 1_900

def test_failure_on_one_chain_fails_request():
    primary, secondary = make_chain("primary"), make_chain("secondary", token=0xBBBB)
    context = make_context(chains=[primary, secondary])
    clients = {
        "primary": FakeChainClient(total_supply=1_000),
        "secondary": FakeChainClient(total_supply=2_000, fail=True),
    }
    aggregator = SupplyAggregator(context, clients)
    with pytest.raises(TransportError):
        aggregator.get_circulating_supply()
    with pytest.raises(TransportError):
        aggregator.get_total_supply()

def test_short_result_fails_request():
    class ShortClient(FakeChainClient):
        def batch_read(self, calls, block_identifier='latest'):
            return super().batch_read(calls, block_identifier)[:-1]

    context = make_context(excluded=[ExcludedAddress(addr(1), "primary")])
    with pytest.raises(DecodeError):
        SupplyAggregator(context, {"primary": ShortClient(total_supply=1_000)}).get_snapshot()

def test_repeated_queries_are_identical():
    context = make_context(onchain_pools=[OnchainPool(addr(10), False, "primary")])
    client = FakeChainClient(
        total_supply=10**24,
        pool_params={addr(10): (10**23, 30 * DAY, 300 * DAY, 10**12)},
        block=(9, TGE + 100 * DAY)
    )
    aggregator = SupplyAggregator(context, {"primary": client})
    assert aggregator.get_snapshot() == aggregator.get_snapshot()

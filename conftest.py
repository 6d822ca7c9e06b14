import pytest
from web3 import Web3

from supply.batch_builder import (
    BURN_BALANCE, EXCLUDED_BALANCE, INITIAL_STAKE, LOCK_PERIOD, RATIO_PRECISION,
    RESERVED_BALANCE, TOTAL_SUPPLY, VESTING_DURATION
)
from supply.errors import TransportError
from supply.models import ChainConfig, SupplyContext

TGE = 1_700_000_000
DAY = 86_400

def addr(n: int) -> str:
    return Web3.to_checksum_address(f"0x{n:040x}")

def make_chain(name: str = "primary", units_per_day: int = DAY, token: int = 0xAAAA) -> ChainConfig:
    return ChainConfig(
        name=name,
        rpc_url=f"http://{name}.invalid",
        token_address=addr(token),
        multicall_address="0xcA11bde05977b3631167028862bE2a173976CA11",
        burn_address=addr(0),
        units_per_day=units_per_day
    )

def make_context(chains=None, excluded=(), onchain_pools=(), offchain_pools=(), decimals=18, tge=TGE) -> SupplyContext:
    return SupplyContext(
        chains=tuple(chains or (make_chain(),)),
        excluded_addresses=tuple(excluded),
        onchain_pools=tuple(onchain_pools),
        offchain_pools=tuple(offchain_pools),
        decimals=decimals,
        tge_timestamp=tge
    )

class FakeChainClient:
    """
    In-memory chain answering batched reads from dictionaries.
    pool_params maps a pool address to (initial, lock_period, vesting_duration, ratio_precision).
    """

    def __init__(self, total_supply=0, balances=None, pool_params=None, block=(1000, TGE), fail=False):
        self.total_supply = total_supply
        self.balances = balances or {}
        self.pool_params = pool_params or {}
        self.block = block
        self.fail = fail
        self.batches = []

    def latest_block(self):
        return self.block

    def batch_read(self, calls, block_identifier='latest'):
        self.batches.append((list(calls), block_identifier))
        if self.fail:
            raise TransportError("connection refused")
        results = []
        for call in calls:
            if call.kind == TOTAL_SUPPLY:
                results.append(self.total_supply)
            elif call.kind in (BURN_BALANCE, EXCLUDED_BALANCE, RESERVED_BALANCE):
                results.append(self.balances.get(call.address, 0))
            else:
                initial, lock, vesting, precision = self.pool_params[call.address]
                results.append({
                    INITIAL_STAKE: initial,
                    LOCK_PERIOD: lock,
                    VESTING_DURATION: vesting,
                    RATIO_PRECISION: precision,
                }[call.kind])
        return results

@pytest.fixture
def chain():
    return make_chain()

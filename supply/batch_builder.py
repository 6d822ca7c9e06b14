"""
Builds the ordered list of read calls issued in one batch per chain.

Call order:
    [0]        totalSupply()
    [1]        balanceOf(burn address)
    [2..2+E)   balanceOf(excluded[i])
    per pool   balanceOf(pool) when reserved, otherwise
               initialSelfStakeAmount(), initialLockPeriod(), vestingDuration(), ratioPrecision()

Every call carries a tag (kind + address) so results can be checked against
the call they answer when decoding.
"""

from dataclasses import dataclass
from typing import List, Tuple

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector

from supply.models import ChainConfig, SupplyContext
from utils.logger import get_logger

logger = get_logger(__name__)

# Call kinds
TOTAL_SUPPLY = "total_supply"
BURN_BALANCE = "burn_balance"
EXCLUDED_BALANCE = "excluded_balance"
RESERVED_BALANCE = "reserved_balance"
INITIAL_STAKE = "initial_stake"
LOCK_PERIOD = "lock_period"
VESTING_DURATION = "vesting_duration"
RATIO_PRECISION = "ratio_precision"

# Staking pool getters, in the order they are batched
POOL_GETTERS = (
    (INITIAL_STAKE, "initialSelfStakeAmount()"),
    (LOCK_PERIOD, "initialLockPeriod()"),
    (VESTING_DURATION, "vestingDuration()"),
    (RATIO_PRECISION, "ratioPrecision()"),
)

@dataclass(frozen=True)
class BatchCall:
    """One uint256 read, tagged with what it reads"""
    kind: str
    target: str  # Contract called
    signature: str  # e.g. "balanceOf(address)"
    address: str = ""  # Account or pool the value belongs to
    args: Tuple = ()
    arg_types: Tuple[str, ...] = ()

    @property
    def call_data(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature) + encode(list(self.arg_types), list(self.args))

    @property
    def tag(self) -> Tuple[str, str]:
        return (self.kind, self.address)

@dataclass(frozen=True)
class Batch:
    """Ordered calls for one chain plus the layout needed to decode them"""
    chain: ChainConfig
    calls: Tuple[BatchCall, ...]
    excluded: Tuple[str, ...]
    pools: Tuple[Tuple[str, bool], ...]  # (pool address, reserved)

def balance_call(kind: str, token: str, account: str) -> BatchCall:
    return BatchCall(
        kind=kind,
        target=token,
        signature="balanceOf(address)",
        address=account,
        args=(account,),
        arg_types=("address",)
    )

def deduplicated_excluded(context: SupplyContext, chain: str) -> List[str]:
    """
    Excluded addresses of a chain, minus the ones accounted for as locked
    (on-chain pools and off-chain pool aliases). Order is preserved.
    """
    locked = context.locked_addresses_for(chain)
    excluded = []
    seen = set()
    for address in context.excluded_for(chain):
        key = address.lower()
        if key in locked:
            logger.debug(f"{address} on {chain} is a pool address, counted as locked only")
            continue
        if key in seen:
            continue
        seen.add(key)
        excluded.append(address)
    return excluded

def build_total_supply_batch(chain: ChainConfig) -> Batch:
    """Two calls: total supply and burned balance"""
    calls = (
        BatchCall(kind=TOTAL_SUPPLY, target=chain.token_address, signature="totalSupply()", address=chain.token_address),
        balance_call(BURN_BALANCE, chain.token_address, chain.burn_address),
    )
    return Batch(chain=chain, calls=calls, excluded=(), pools=())

def build_supply_batch(context: SupplyContext, chain: ChainConfig) -> Batch:
    """Full circulating supply batch for one chain"""
    base = build_total_supply_batch(chain)
    calls = list(base.calls)

    excluded = deduplicated_excluded(context, chain.name)
    for address in excluded:
        calls.append(balance_call(EXCLUDED_BALANCE, chain.token_address, address))

    pools = []
    for pool in context.pools_for(chain.name):
        pools.append((pool.address, pool.reserved))
        if pool.reserved:
            calls.append(balance_call(RESERVED_BALANCE, chain.token_address, pool.address))
            continue
        for kind, signature in POOL_GETTERS:
            calls.append(BatchCall(kind=kind, target=pool.address, signature=signature, address=pool.address))

    logger.debug(f"Built {len(calls)} calls for {chain.name}: {len(excluded)} excluded, {len(pools)} pools")

    return Batch(chain=chain, calls=tuple(calls), excluded=tuple(excluded), pools=tuple(pools))

"""
Typed records shared by the supply engine.
Configuration records are frozen: they are built once at startup and only read afterwards.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

VESTING_LINEAR = "linear"
VESTING_STEPPED = "stepped"
VESTING_TYPES = (VESTING_LINEAR, VESTING_STEPPED)

@dataclass(frozen=True)
class ChainConfig:
    """
    One chain the token lives on.
    units_per_day converts pool lock/vesting durations (seconds or blocks) to days.
    """
    name: str
    rpc_url: str
    token_address: str
    multicall_address: str
    burn_address: str
    units_per_day: int

@dataclass(frozen=True)
class ExcludedAddress:
    address: str  # Checksum address
    chain: str  # Chain name

@dataclass(frozen=True)
class PoolAlias:
    address: str
    chain: str

@dataclass(frozen=True)
class OffchainPoolEntry:
    """
    Vesting wallet described off-chain. All aliases are the same logical wallet,
    its allocation is balance_at_tge and never read from chain.
    """
    aliases: Tuple[PoolAlias, ...]
    tge_percentage: int  # 0-100
    cliff_days: int
    vesting_days: int
    vesting_type: str  # "linear" or "stepped"
    balance_at_tge: int  # Raw amount in smallest unit
    name: str = ""

@dataclass(frozen=True)
class OnchainPool:
    """
    Staking pool contract. A reserved pool's whole balance is locked,
    otherwise its vesting parameters are read from the contract.
    """
    address: str
    reserved: bool
    chain: str
    start_timestamp: Optional[int] = None  # Defaults to the deployment TGE

@dataclass(frozen=True)
class SupplyContext:
    """Immutable startup configuration passed into every component call"""
    chains: Tuple[ChainConfig, ...]
    excluded_addresses: Tuple[ExcludedAddress, ...]
    onchain_pools: Tuple[OnchainPool, ...]
    offchain_pools: Tuple[OffchainPoolEntry, ...]
    decimals: int
    tge_timestamp: int

    def chain(self, name: str) -> ChainConfig:
        for chain in self.chains:
            if chain.name == name:
                return chain
        raise KeyError(f"Chain {name} not configured")

    def excluded_for(self, chain: str) -> List[str]:
        return [entry.address for entry in self.excluded_addresses if entry.chain == chain]

    def pools_for(self, chain: str) -> List[OnchainPool]:
        return [pool for pool in self.onchain_pools if pool.chain == chain]

    def locked_addresses_for(self, chain: str) -> set:
        """Addresses on a chain whose funds are accounted for through the locked balance"""
        addresses = {pool.address.lower() for pool in self.pools_for(chain)}
        for entry in self.offchain_pools:
            addresses.update(alias.address.lower() for alias in entry.aliases if alias.chain == chain)
        return addresses

@dataclass(frozen=True)
class VestingResult:
    locked_amount: int
    unlocked_fraction: int  # Scaled by ratio_precision
    days_passed: int
    days_until_lock_ends: int
    days_until_vesting_ends: int
    warning: Optional[str] = None  # Set when the parameters were rejected

@dataclass
class PoolBreakdown:
    """Locked amount contributed by one pool, kept for diagnostics"""
    label: str
    source: str  # "offchain", "onchain" or "reserved"
    locked_amount: int
    vesting: Optional[VestingResult] = None

@dataclass
class SupplySnapshot:
    """
    Supply figures computed for one request, all in the token's smallest unit.
    Tied to the block observed on each chain during that request.
    """
    total_supply: int  # Net of burned tokens, summed over chains
    burn_balance: int
    excluded_balance: int
    locked_balance: int
    circulating_supply: int
    timestamp: int
    blocks: Dict[str, int] = field(default_factory=dict)  # chain -> block number
    pools: List[PoolBreakdown] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

"""
Address list loading and validation.

Lists live as JSON files next to this module:
- excluded_address_list.json: addresses whose balance is never circulating
- pool_address_list.json: on-chain staking pools (reserved or vesting)
- offchain_pool_list.json: vesting wallets described off-chain

Plain address strings are accepted in the first two lists and default to the primary chain.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from web3 import Web3

from config.networks import NETWORKS, RPC_URLS, TOKEN_ADDRESSES, TGE_TIMESTAMP
from supply.errors import ConfigurationError
from supply.models import (
    VESTING_TYPES, ChainConfig, ExcludedAddress, OffchainPoolEntry,
    OnchainPool, PoolAlias, SupplyContext
)
from utils.logger import get_logger

logger = get_logger(__name__)

CONFIG_DIR = Path(__file__).parent
DEFAULT_CHAIN = "primary"

EXCLUDED_LIST_FILE = "excluded_address_list.json"
POOL_LIST_FILE = "pool_address_list.json"
OFFCHAIN_POOL_LIST_FILE = "offchain_pool_list.json"

def load_list(path: Path) -> List[Any]:
    """Read a JSON list, a missing file is an empty list"""
    if not path.exists():
        logger.debug(f"{path.name} not found, using an empty list")
        return []
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Failed to parse {path.name}: {e}") from e
    if not isinstance(data, list):
        raise ConfigurationError(f"{path.name} must contain a JSON list")
    return data

def to_checksum(address: Any, source: str) -> str:
    if not isinstance(address, str) or not Web3.is_address(address):
        raise ConfigurationError(f"Invalid address {address!r} in {source}")
    return Web3.to_checksum_address(address)

def to_int(value: Any, field: str, source: str) -> int:
    """Integers may be given as JSON numbers or decimal strings (large balances)"""
    if isinstance(value, (bool, float)):
        raise ConfigurationError(f"Invalid {field} {value!r} in {source}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid {field} {value!r} in {source}") from e

def check_chain(chain: Any, chains: Iterable[str], source: str) -> str:
    if chain not in chains:
        raise ConfigurationError(f"Unknown chain {chain!r} in {source}")
    return chain

def parse_excluded(items: List[Any], chains: Iterable[str]) -> Tuple[ExcludedAddress, ...]:
    excluded = []
    for item in items:
        if isinstance(item, str):
            item = {"address": item}
        if not isinstance(item, dict):
            raise ConfigurationError(f"Malformed entry {item!r} in {EXCLUDED_LIST_FILE}")
        excluded.append(ExcludedAddress(
            address=to_checksum(item.get("address"), EXCLUDED_LIST_FILE),
            chain=check_chain(item.get("chain", DEFAULT_CHAIN), chains, EXCLUDED_LIST_FILE)
        ))
    return tuple(excluded)

def parse_onchain_pools(items: List[Any], chains: Iterable[str]) -> Tuple[OnchainPool, ...]:
    pools = []
    for item in items:
        if isinstance(item, str):
            item = {"address": item}
        if not isinstance(item, dict):
            raise ConfigurationError(f"Malformed entry {item!r} in {POOL_LIST_FILE}")
        start = item.get("start_timestamp")
        pools.append(OnchainPool(
            address=to_checksum(item.get("address"), POOL_LIST_FILE),
            reserved=bool(item.get("reserved", False)),
            chain=check_chain(item.get("chain", DEFAULT_CHAIN), chains, POOL_LIST_FILE),
            start_timestamp=None if start is None else to_int(start, "start_timestamp", POOL_LIST_FILE)
        ))
    return tuple(pools)

def parse_offchain_pools(items: List[Any], chains: Iterable[str]) -> Tuple[OffchainPoolEntry, ...]:
    entries = []
    source = OFFCHAIN_POOL_LIST_FILE
    for item in items:
        if not isinstance(item, dict) or not item.get("aliases"):
            raise ConfigurationError(f"Malformed entry {item!r} in {source}")

        aliases = []
        for alias in item["aliases"]:
            if isinstance(alias, str):
                alias = {"address": alias}
            if not isinstance(alias, dict):
                raise ConfigurationError(f"Malformed alias {alias!r} in {source}")
            aliases.append(PoolAlias(
                address=to_checksum(alias.get("address"), source),
                chain=check_chain(alias.get("chain", DEFAULT_CHAIN), chains, source)
            ))

        vesting_type = item.get("vesting_type", "linear")
        if vesting_type not in VESTING_TYPES:
            raise ConfigurationError(f"Unknown vesting type {vesting_type!r} in {source}")

        try:
            entries.append(OffchainPoolEntry(
                aliases=tuple(aliases),
                tge_percentage=to_int(item["tge_percentage"], "tge_percentage", source),
                cliff_days=to_int(item["cliff_days"], "cliff_days", source),
                vesting_days=to_int(item["vesting_days"], "vesting_days", source),
                vesting_type=vesting_type,
                balance_at_tge=to_int(item["balance_at_tge"], "balance_at_tge", source),
                name=item.get("name", "")
            ))
        except KeyError as e:
            raise ConfigurationError(f"Missing field {e} in {source} entry {item!r}") from e
    return tuple(entries)

def validate_address_lists(
    excluded: Iterable[ExcludedAddress],
    pools: Iterable[OnchainPool],
    offchain_pools: Iterable[OffchainPoolEntry] = ()
) -> None:
    """Fail when an address would be counted twice: repeated pool, excluded pool, or pool also listed off-chain"""
    pools = list(pools)
    pool_keys = [(pool.address.lower(), pool.chain) for pool in pools]
    repeated = sorted({f"{address} ({chain})" for address, chain in pool_keys if pool_keys.count((address, chain)) > 1})
    if repeated:
        raise ConfigurationError(f"Pool addresses listed more than once in '{POOL_LIST_FILE}':\n" + "\n".join(repeated))

    excluded_keys = {(entry.address.lower(), entry.chain) for entry in excluded}
    duplicates = [
        f"{pool.address} ({pool.chain})"
        for pool in pools
        if (pool.address.lower(), pool.chain) in excluded_keys
    ]

    if duplicates:
        raise ConfigurationError(
            "Pool addresses found in the excluded addresses list, "
            "this would cause double counting in supply calculations.\n"
            f"Remove these addresses from '{EXCLUDED_LIST_FILE}':\n"
            + "\n".join(duplicates)
        )

    pool_key_set = set(pool_keys)
    shared = [
        f"{alias.address} ({alias.chain})"
        for entry in offchain_pools
        for alias in entry.aliases
        if (alias.address.lower(), alias.chain) in pool_key_set
    ]
    if shared:
        raise ConfigurationError(
            "Off-chain pool aliases found in the on-chain pool list, "
            "their locked balance would be counted twice.\n"
            f"Remove these addresses from '{POOL_LIST_FILE}' or '{OFFCHAIN_POOL_LIST_FILE}':\n"
            + "\n".join(shared)
        )

def parse_tge_timestamp(value: Any) -> Optional[int]:
    """TGE timestamp from the environment, None when unset"""
    if value is None or value == "" or value == 0 or value == "0":
        return None
    try:
        timestamp = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid TGE_TIMESTAMP {value!r}") from e
    if timestamp <= 0:
        raise ConfigurationError(f"TGE_TIMESTAMP must be positive, got {timestamp}")
    return timestamp

def build_chains(
    rpc_urls: Optional[Dict[str, Optional[str]]] = None,
    token_addresses: Optional[Dict[str, Optional[str]]] = None
) -> Tuple[ChainConfig, ...]:
    """
    Chain configs for every network with an RPC endpoint.
    The primary network is mandatory, the secondary one is optional.
    """
    rpc_urls = RPC_URLS if rpc_urls is None else rpc_urls
    token_addresses = TOKEN_ADDRESSES if token_addresses is None else token_addresses

    chains = []
    for name, network in NETWORKS.items():
        rpc_url = rpc_urls.get(name)
        if not rpc_url:
            if name == DEFAULT_CHAIN:
                raise ConfigurationError("PRIMARY_RPC_URL not configured in .env file")
            continue

        token_address = token_addresses.get(name)
        if not token_address:
            raise ConfigurationError(f"Token address not configured for network {name}")

        units_per_day = network["units_per_day"]
        if units_per_day <= 0:
            raise ConfigurationError(f"units_per_day must be positive for network {name}")

        chains.append(ChainConfig(
            name=name,
            rpc_url=rpc_url,
            token_address=to_checksum(token_address, f"{name} token address"),
            multicall_address=Web3.to_checksum_address(network["multicall_address"]),
            burn_address=Web3.to_checksum_address(network["burn_address"]),
            units_per_day=units_per_day
        ))
    return tuple(chains)

def load_context(
    decimals: int,
    chains: Optional[Tuple[ChainConfig, ...]] = None,
    config_dir: Path = CONFIG_DIR,
    tge_timestamp: Any = TGE_TIMESTAMP
) -> SupplyContext:
    """
    Load and validate every address list, returning the immutable context.
    Raises ConfigurationError on malformed or overlapping lists, or when a
    schedule needs the TGE timestamp and none is configured.
    """
    chains = build_chains() if chains is None else chains
    chain_names = [chain.name for chain in chains]

    excluded = parse_excluded(load_list(config_dir / EXCLUDED_LIST_FILE), chain_names)
    onchain_pools = parse_onchain_pools(load_list(config_dir / POOL_LIST_FILE), chain_names)
    offchain_pools = parse_offchain_pools(load_list(config_dir / OFFCHAIN_POOL_LIST_FILE), chain_names)

    validate_address_lists(excluded, onchain_pools, offchain_pools)

    tge = parse_tge_timestamp(tge_timestamp)
    needs_tge = [entry.name or entry.aliases[0].address for entry in offchain_pools] + [
        pool.address for pool in onchain_pools if not pool.reserved and pool.start_timestamp is None
    ]
    if tge is None and needs_tge:
        raise ConfigurationError(
            "TGE_TIMESTAMP not configured in .env file, required by these vesting schedules:\n"
            + "\n".join(needs_tge)
        )

    if not 0 <= decimals <= 255:
        raise ConfigurationError(f"Token decimals must be between 0 and 255, got {decimals}")

    logger.debug(
        f"Loaded {len(excluded)} excluded addresses, {len(onchain_pools)} on-chain pools, "
        f"{len(offchain_pools)} off-chain pools on {', '.join(chain_names)}"
    )

    return SupplyContext(
        chains=tuple(chains),
        excluded_addresses=excluded,
        onchain_pools=onchain_pools,
        offchain_pools=offchain_pools,
        decimals=decimals,
        tge_timestamp=tge or 0
    )

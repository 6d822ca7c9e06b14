from pathlib import Path
import argparse
import sys
from typing import Dict, Optional

"""
Token supply reader.
Answers total and circulating supply as decimal strings, recomputed from the latest
chain state on every call.
"""

# Add parent directory to PYTHONPATH
root_path = str(Path(__file__).parent.parent)
sys.path.append(root_path)

from config.addresses import CONFIG_DIR, build_chains, load_context
from config.networks import RPC_TIMEOUT, TOKEN_DECIMALS
from supply.aggregator import SupplyAggregator
from supply.errors import ConfigurationError, SupplyError
from supply.models import SupplyContext, SupplySnapshot
from supply.multicall_client import MulticallClient
from utils.formatting import to_human
from utils.logger import get_logger

logger = get_logger(__name__)

class SupplyReader:
    """
    Entry point used by callers (HTTP layer, CLI).
    Holds the immutable context and one client per chain, no per-request state.
    """

    def __init__(self, context: SupplyContext, clients: Dict):
        self.context = context
        self.aggregator = SupplyAggregator(context, clients)

    @classmethod
    def from_env(cls, config_dir: Path = CONFIG_DIR, timeout: int = RPC_TIMEOUT) -> 'SupplyReader':
        """Build the reader from .env settings and the address lists in config_dir"""
        chains = build_chains()
        clients = {chain.name: MulticallClient(chain, timeout=timeout) for chain in chains}

        decimals = resolve_decimals(TOKEN_DECIMALS, clients[chains[0].name], chains[0].token_address)
        context = load_context(decimals=decimals, chains=chains, config_dir=config_dir)

        logger.info(f"Token decimals: {decimals}")
        logger.info(f"Chains: {', '.join(chain.name for chain in chains)}")
        return cls(context, clients)

    def get_total_supply(self) -> str:
        """Total supply minus burned tokens, formatted with the token decimals"""
        return to_human(self.aggregator.get_total_supply(), self.context.decimals)

    def get_circulating_supply(self) -> str:
        """Total supply minus excluded, locked and burned balances"""
        return to_human(self.aggregator.get_circulating_supply(), self.context.decimals)

    def get_supply_snapshot(self) -> SupplySnapshot:
        return self.aggregator.get_snapshot()

def resolve_decimals(configured: Optional[str], client: MulticallClient, token_address: str) -> int:
    """Configured decimals win, otherwise they are read from the token contract"""
    if configured is None or configured == "":
        return client.read_decimals(token_address)
    try:
        return int(configured)
    except ValueError as e:
        raise ConfigurationError(f"Invalid TOKEN_DECIMALS {configured!r}") from e

def print_breakdown(snapshot: SupplySnapshot, decimals: int) -> None:
    print("\n" + "="*80)
    print("SUPPLY BREAKDOWN")
    print("="*80)
    print(f"Blocks: {', '.join(f'{chain} #{number}' for chain, number in snapshot.blocks.items())}")
    print(f"Timestamp: {snapshot.timestamp}")
    print(f"\nTotal supply (net of burn): {to_human(snapshot.total_supply, decimals)}")
    print(f"Burned: {to_human(snapshot.burn_balance, decimals)}")
    print(f"Excluded: {to_human(snapshot.excluded_balance, decimals)}")
    print(f"Locked: {to_human(snapshot.locked_balance, decimals)}")
    print(f"Circulating: {to_human(snapshot.circulating_supply, decimals)}")

    if snapshot.pools:
        print("\nPools:")
    for pool in snapshot.pools:
        print(f"- {pool.label} [{pool.source}]")
        print(f"  Locked: {to_human(pool.locked_amount, decimals)}")
        if pool.vesting is not None and pool.vesting.warning is None:
            print(f"  Days passed: {pool.vesting.days_passed}")
            print(f"  Days until lock ends: {pool.vesting.days_until_lock_ends}")
            print(f"  Days until vesting ends: {pool.vesting.days_until_vesting_ends}")

    for warning in snapshot.warnings:
        print(f"⚠️  {warning}")

def main(argv=None) -> int:
    """CLI utility to check token supply"""
    parser = argparse.ArgumentParser(description='Read token total and circulating supply')
    parser.add_argument('query', nargs='?', default='circulating',
                        choices=['total', 'circulating', 'breakdown'],
                        help='Figure to compute (default: circulating)')
    args = parser.parse_args(argv)

    try:
        reader = SupplyReader.from_env()
        if args.query == 'total':
            print(reader.get_total_supply())
        elif args.query == 'circulating':
            print(reader.get_circulating_supply())
        else:
            print_breakdown(reader.get_supply_snapshot(), reader.context.decimals)
    except SupplyError as e:
        logger.error(f"❌ {type(e).__name__}: {e}")
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())

"""
Supply aggregation.
Reads every configured chain in one batch each, applies vesting to pools and nets
total, excluded, locked and burned balances into total and circulating supply.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Sequence

from supply.batch_builder import Batch, build_supply_batch, build_total_supply_batch
from supply.models import (
    VESTING_LINEAR, PoolBreakdown, SupplyContext, SupplySnapshot, VestingResult
)
from supply.result_decoder import DecodedBatch, ReservedPoolRecord, decode_batch
from supply.vesting import OFFCHAIN_RATIO_PRECISION, calculate_vesting
from utils.logger import get_logger

logger = get_logger(__name__)

@dataclass
class ChainRead:
    """Decoded batch of one chain and the block it was read at"""
    decoded: DecodedBatch
    block_number: int
    timestamp: int

def chain_total(decoded: DecodedBatch) -> int:
    return max(0, decoded.total_supply - decoded.burn_balance)

def net_circulating(grand_total: int, excluded_balance: int, locked_balance: int) -> int:
    """Each subtraction is clamped at zero on its own"""
    after_excluded = max(0, max(0, grand_total) - excluded_balance)
    return max(0, after_excluded - locked_balance)

class SupplyAggregator:
    """
    Computes supply figures from live chain state.

    Args:
        context: Immutable startup configuration
        clients: Chain name -> client exposing latest_block() and batch_read()
    """

    def __init__(self, context: SupplyContext, clients: Dict):
        self.context = context
        self.clients = clients

    def read_chain(self, batch: Batch) -> ChainRead:
        client = self.clients[batch.chain.name]
        block_number, timestamp = client.latest_block()
        results = client.batch_read(batch.calls, block_identifier=block_number)
        return ChainRead(decode_batch(batch, results), block_number, timestamp)

    def read_chains(self, batches: Sequence[Batch]) -> List[ChainRead]:
        """Reads every batch, concurrently when there is more than one chain"""
        if len(batches) == 1:
            return [self.read_chain(batches[0])]
        with ThreadPoolExecutor(max_workers=len(batches)) as executor:
            futures = [executor.submit(self.read_chain, batch) for batch in batches]
            # result() re-raises, a failed chain fails the whole request
            return [future.result() for future in futures]

    def get_total_supply(self) -> int:
        """Total supply net of burned tokens, summed over chains"""
        reads = self.read_chains([build_total_supply_batch(chain) for chain in self.context.chains])
        return sum(chain_total(read.decoded) for read in reads)

    def get_snapshot(self) -> SupplySnapshot:
        """Full circulating supply computation with per-pool details"""
        batches = [build_supply_batch(self.context, chain) for chain in self.context.chains]
        reads = self.read_chains(batches)

        grand_total = sum(chain_total(read.decoded) for read in reads)
        burn_balance = sum(read.decoded.burn_balance for read in reads)
        excluded_balance = sum(sum(read.decoded.excluded_balances) for read in reads)

        # Off-chain schedules are evaluated against the primary chain clock
        now = reads[0].timestamp
        pools = self.offchain_locked(now)
        for read in reads:
            pools.extend(self.onchain_locked(read))

        locked_balance = sum(pool.locked_amount for pool in pools)
        warnings = [
            f"{pool.label}: {pool.vesting.warning}"
            for pool in pools
            if pool.vesting is not None and pool.vesting.warning
        ]

        snapshot = SupplySnapshot(
            total_supply=grand_total,
            burn_balance=burn_balance,
            excluded_balance=excluded_balance,
            locked_balance=locked_balance,
            circulating_supply=net_circulating(grand_total, excluded_balance, locked_balance),
            timestamp=now,
            blocks={read.decoded.chain: read.block_number for read in reads},
            pools=pools,
            warnings=warnings
        )
        logger.debug(
            f"Supply at {snapshot.blocks}: total={grand_total} excluded={excluded_balance} "
            f"locked={locked_balance} circulating={snapshot.circulating_supply}"
        )
        return snapshot

    def get_circulating_supply(self) -> int:
        return self.get_snapshot().circulating_supply

    def offchain_locked(self, now: int) -> List[PoolBreakdown]:
        """One vesting computation per logical wallet, whatever its number of aliases"""
        pools = []
        for entry in self.context.offchain_pools:
            result = calculate_vesting(
                initial=entry.balance_at_tge,
                tge_percentage=entry.tge_percentage,
                cliff_days=entry.cliff_days,
                vesting_days=entry.vesting_days,
                ratio_precision=OFFCHAIN_RATIO_PRECISION,
                current_timestamp=now,
                tge_timestamp=self.context.tge_timestamp,
                vesting_type=entry.vesting_type
            )
            label = entry.name or entry.aliases[0].address
            pools.append(PoolBreakdown(label, "offchain", result.locked_amount, result))
        return pools

    def onchain_locked(self, read: ChainRead) -> List[PoolBreakdown]:
        chain = read.decoded.chain
        starts = {pool.address: pool.start_timestamp for pool in self.context.pools_for(chain)}

        pools = []
        for record in read.decoded.pool_records:
            label = f"{record.address} ({chain})"
            if isinstance(record, ReservedPoolRecord):
                pools.append(PoolBreakdown(label, "reserved", record.balance))
                continue

            start = starts.get(record.address)
            result: VestingResult = calculate_vesting(
                initial=record.initial,
                tge_percentage=0,
                cliff_days=record.cliff_days,
                vesting_days=record.vesting_days,
                ratio_precision=record.ratio_precision,
                current_timestamp=read.timestamp,
                tge_timestamp=self.context.tge_timestamp if start is None else start,
                vesting_type=VESTING_LINEAR
            )
            pools.append(PoolBreakdown(label, "onchain", result.locked_amount, result))
        return pools

"""
Decodes the flat result list of a batch back into typed records.
Results are consumed strictly in call order and checked against each call's tag.
"""

from dataclasses import dataclass, field
from typing import List, Sequence, Union

from supply.batch_builder import (
    BURN_BALANCE, EXCLUDED_BALANCE, INITIAL_STAKE, LOCK_PERIOD, RATIO_PRECISION,
    RESERVED_BALANCE, TOTAL_SUPPLY, VESTING_DURATION, Batch, BatchCall
)
from supply.errors import DecodeError

@dataclass(frozen=True)
class ReservedPoolRecord:
    address: str
    balance: int

@dataclass(frozen=True)
class VestingPoolRecord:
    address: str
    initial: int
    lock_period_raw: int  # Chain native unit (seconds or blocks)
    vesting_duration_raw: int
    ratio_precision: int
    units_per_day: int

    @property
    def cliff_days(self) -> int:
        return self.lock_period_raw // self.units_per_day

    @property
    def vesting_days(self) -> int:
        return self.vesting_duration_raw // self.units_per_day

PoolRecord = Union[ReservedPoolRecord, VestingPoolRecord]

@dataclass
class DecodedBatch:
    chain: str
    total_supply: int
    burn_balance: int
    excluded_balances: List[int] = field(default_factory=list)
    pool_records: List[PoolRecord] = field(default_factory=list)

class ResultCursor:
    """Walks results alongside the calls that produced them"""

    def __init__(self, calls: Sequence[BatchCall], results: Sequence[int], chain: str):
        self.calls = calls
        self.results = results
        self.chain = chain
        self.position = 0

    def take(self, kind: str, address: str = None) -> int:
        if self.position >= len(self.results):
            raise DecodeError(
                f"Missing result #{self.position} ({kind}) on {self.chain}: "
                f"got {len(self.results)} results for {len(self.calls)} calls"
            )
        call = self.calls[self.position]
        if call.kind != kind or (address is not None and call.address != address):
            raise DecodeError(
                f"Result #{self.position} on {self.chain} answers {call.tag}, expected {(kind, address)}"
            )
        value = self.results[self.position]
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise DecodeError(f"Result #{self.position} ({kind}) on {self.chain} is not a uint256: {value!r}")
        self.position += 1
        return value

    def finish(self) -> None:
        if self.position != len(self.results):
            raise DecodeError(
                f"{len(self.results) - self.position} unexpected extra results on {self.chain}"
            )

def decode_batch(batch: Batch, results: Sequence[int]) -> DecodedBatch:
    """
    Rebuild the records of a batch from its raw results.

    Args:
        batch: Batch the results answer
        results: Raw uint256 values in call order

    Returns:
        DecodedBatch
    """
    chain = batch.chain.name
    if len(results) < len(batch.calls):
        raise DecodeError(f"Expected {len(batch.calls)} results on {chain}, got {len(results)}")

    cursor = ResultCursor(batch.calls, results, chain)
    decoded = DecodedBatch(
        chain=chain,
        total_supply=cursor.take(TOTAL_SUPPLY),
        burn_balance=cursor.take(BURN_BALANCE, batch.chain.burn_address)
    )

    for address in batch.excluded:
        decoded.excluded_balances.append(cursor.take(EXCLUDED_BALANCE, address))

    for address, reserved in batch.pools:
        if reserved:
            decoded.pool_records.append(ReservedPoolRecord(address, cursor.take(RESERVED_BALANCE, address)))
            continue
        decoded.pool_records.append(VestingPoolRecord(
            address=address,
            initial=cursor.take(INITIAL_STAKE, address),
            lock_period_raw=cursor.take(LOCK_PERIOD, address),
            vesting_duration_raw=cursor.take(VESTING_DURATION, address),
            ratio_precision=cursor.take(RATIO_PRECISION, address),
            units_per_day=batch.chain.units_per_day
        ))

    cursor.finish()
    return decoded

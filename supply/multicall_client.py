"""
Chain transport: one Web3 connection per chain, batched reads through Multicall3.

aggregate3 runs every call inside a single eth_call with allowFailure disabled,
so a batch either answers every call or fails as a whole.
"""

from typing import List, Sequence, Tuple, Union

import requests
from eth_abi import decode
from eth_abi.exceptions import DecodingError
from web3 import Web3
from web3.exceptions import Web3Exception

from supply.abis import ERC20_ABI, MULTICALL3_ABI
from supply.batch_builder import BatchCall
from supply.errors import DecodeError, TransportError
from supply.models import ChainConfig
from utils.logger import get_logger

logger = get_logger(__name__)

# Failures raised by web3 and its HTTP provider
RPC_ERRORS = (Web3Exception, requests.exceptions.RequestException, ValueError, TimeoutError, ConnectionError)

BlockIdentifier = Union[int, str]

class MulticallClient:
    """
    Reads on-chain state for one chain.
    No retries: any RPC failure surfaces as TransportError.
    """

    def __init__(self, chain: ChainConfig, timeout: int = 30, w3: Web3 = None):
        self.chain = chain
        self.w3 = w3 or Web3(Web3.HTTPProvider(chain.rpc_url, request_kwargs={'timeout': timeout}))
        self.multicall = self.w3.eth.contract(
            address=Web3.to_checksum_address(chain.multicall_address),
            abi=MULTICALL3_ABI
        )

    def latest_block(self) -> Tuple[int, int]:
        """Returns (block number, block timestamp) of the latest block"""
        try:
            block = self.w3.eth.get_block('latest')
        except RPC_ERRORS as e:
            raise TransportError(f"Failed to fetch latest block on {self.chain.name}: {e}") from e
        return block['number'], block['timestamp']

    def batch_read(self, calls: Sequence[BatchCall], block_identifier: BlockIdentifier = 'latest') -> List[int]:
        """
        Issue every call in one aggregate3 round trip.

        Args:
            calls: Ordered uint256 reads
            block_identifier: Block the reads are pinned to

        Returns:
            Raw uint256 values in call order
        """
        payload = [(Web3.to_checksum_address(call.target), False, call.call_data) for call in calls]
        try:
            responses = self.multicall.functions.aggregate3(payload).call(block_identifier=block_identifier)
        except RPC_ERRORS as e:
            raise TransportError(f"Batch of {len(calls)} calls failed on {self.chain.name}: {e}") from e

        logger.debug(f"{self.chain.name}: {len(responses)} results at block {block_identifier}")

        if len(responses) != len(calls):
            raise DecodeError(f"Multicall returned {len(responses)} results for {len(calls)} calls on {self.chain.name}")

        values = []
        for call, (success, return_data) in zip(calls, responses):
            if not success:
                raise TransportError(f"Call {call.signature} to {call.target} reverted on {self.chain.name}")
            try:
                values.append(decode(['uint256'], return_data)[0])
            except DecodingError as e:
                raise DecodeError(
                    f"Call {call.signature} to {call.target} on {self.chain.name} "
                    f"returned {len(return_data)} bytes, not a uint256"
                ) from e
        return values

    def read_decimals(self, token_address: str) -> int:
        """Token decimals, used at startup when not configured"""
        token = self.w3.eth.contract(address=Web3.to_checksum_address(token_address), abi=ERC20_ABI)
        try:
            return token.functions.decimals().call()
        except RPC_ERRORS as e:
            raise TransportError(f"Failed to read decimals of {token_address} on {self.chain.name}: {e}") from e

from .abis import ERC20_ABI, MULTICALL3_ABI

__all__ = ['ERC20_ABI', 'MULTICALL3_ABI']

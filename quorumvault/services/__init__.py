"""External service adapters."""

from .blockchain import ERC20ABI, Web3AssetBank

__all__ = ["ERC20ABI", "Web3AssetBank"]

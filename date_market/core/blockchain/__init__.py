"""On-chain bridge for USDC balances and DateMarket contracts."""

from date_market.core.blockchain.chain_client import ChainClient, ChainMarketState

__all__ = ["ChainClient", "ChainMarketState"]

"""Read API for the marketplace contract (fullnode view functions and resources)."""

from .fanout import gather_partial
from .reader import MarketplaceRead
from .view import MarketplaceViewCaller

__all__ = ["MarketplaceRead", "MarketplaceViewCaller", "gather_partial"]

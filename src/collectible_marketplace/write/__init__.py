"""Write API for the marketplace contract (signs via an injected TransactionSigner)."""

from .writer import MarketplaceWrite

__all__ = ["MarketplaceWrite"]

"""
In-memory collaborators and deployment wiring
"""

from .deployment import Deployment, deploy
from .price_feed import InMemoryPriceFeed

__all__ = [
    "Deployment",
    "deploy",
    "InMemoryPriceFeed",
]

"""
dscengine: overcollateralized, dollar-pegged stablecoin engine
"""

__version__ = "0.1.0"

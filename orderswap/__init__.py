"""
orderswap - escrow-based token swap order registry.
"""

__version__ = "0.1.0"

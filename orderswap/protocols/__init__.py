"""
Protocols - collaborator interfaces the registry depends on.
"""

from .asset_ledger import AssetLedger

__all__ = [
    "AssetLedger",
]

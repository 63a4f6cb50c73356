"""
Asset Ledger Protocol - balance-per-identity ledger for one fungible asset.
The registry only calls these methods; it never inspects ledger internals.
"""

from typing import Protocol, Any
from abc import abstractmethod


class AssetLedger(Protocol):
    """Protocol for a fungible asset ledger."""
    
    asset_id: str
    
    @abstractmethod
    def balance_of(self, holder: str) -> int:
        """Current balance of holder."""
        ...
    
    @abstractmethod
    def transfer(self, sender: str, to: str, amount: int) -> bool:
        """Move amount out of sender's own holdings. Raises TransferFailedError."""
        ...
    
    @abstractmethod
    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        """Move amount out of owner's holdings using spender's allowance. Raises TransferFailedError."""
        ...
    
    @abstractmethod
    def snapshot(self) -> Any:
        """Opaque copy of ledger state for rollback."""
        ...
    
    @abstractmethod
    def restore(self, state: Any) -> None:
        """Restore a state returned by snapshot()."""
        ...

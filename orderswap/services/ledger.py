"""
TokenLedger - in-memory fungible asset ledger.
ERC-20 style balances and allowances, plus snapshot/restore so a registry
call that touches several ledgers can be undone as a unit.
"""

import copy
import logging
from contextlib import contextmanager
from typing import Dict, Iterator, Tuple, Any

from orderswap.errors import (
    TransferFailedError, InsufficientBalanceError, InsufficientAllowanceError
)
from orderswap.protocols.asset_ledger import AssetLedger
from orderswap.util.identity import is_valid_identity, normalize_identity

logger = logging.getLogger(__name__)


class TokenLedger:
    """In-memory ledger for a single asset."""
    
    def __init__(self, asset_id: str):
        self.asset_id = asset_id
        self.balances: Dict[str, int] = {}
        self.allowances: Dict[Tuple[str, str], int] = {}
        self.total_supply = 0
    
    def _address(self, value: str, role: str) -> str:
        if not is_valid_identity(value):
            raise TransferFailedError(
                f"Invalid {role} address for {self.asset_id}",
                details={"asset": self.asset_id, role: str(value)}
            )
        return normalize_identity(value)
    
    def _check_amount(self, amount: int):
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise TransferFailedError(
                f"Invalid amount {amount!r} for {self.asset_id}",
                details={"asset": self.asset_id, "amount": str(amount)}
            )
    
    def balance_of(self, holder: str) -> int:
        """Balance of holder, zero if never funded."""
        if not is_valid_identity(holder):
            return 0
        return self.balances.get(normalize_identity(holder), 0)
    
    def allowance(self, owner: str, spender: str) -> int:
        """Remaining amount spender may move on owner's behalf."""
        key = (self._address(owner, "owner"), self._address(spender, "spender"))
        return self.allowances.get(key, 0)
    
    def mint(self, to: str, amount: int) -> None:
        """Credit new units to an address."""
        to = self._address(to, "to")
        self._check_amount(amount)
        self.balances[to] = self.balances.get(to, 0) + amount
        self.total_supply += amount
        logger.debug(f"[ledger:{self.asset_id}] Minted {amount} to {to}")
    
    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Set spender's allowance over owner's balance (replaces the previous value)."""
        key = (self._address(owner, "owner"), self._address(spender, "spender"))
        self._check_amount(amount)
        self.allowances[key] = amount
        logger.debug(f"[ledger:{self.asset_id}] {key[0]} approved {key[1]} for {amount}")
        return True
    
    def transfer(self, sender: str, to: str, amount: int) -> bool:
        """Move amount from sender to to."""
        sender = self._address(sender, "sender")
        to = self._address(to, "to")
        self._check_amount(amount)
        self._move(sender, to, amount)
        return True
    
    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        """Move amount from owner to to, consuming spender's allowance."""
        spender = self._address(spender, "spender")
        owner = self._address(owner, "owner")
        to = self._address(to, "to")
        self._check_amount(amount)
        
        allowed = self.allowances.get((owner, spender), 0)
        if allowed < amount:
            raise InsufficientAllowanceError(details={
                "asset": self.asset_id,
                "owner": owner,
                "spender": spender,
                "allowance": allowed,
                "amount": amount
            })
        
        self._move(owner, to, amount)
        self.allowances[(owner, spender)] = allowed - amount
        return True
    
    def _move(self, sender: str, to: str, amount: int):
        balance = self.balances.get(sender, 0)
        if balance < amount:
            raise InsufficientBalanceError(details={
                "asset": self.asset_id,
                "holder": sender,
                "balance": balance,
                "amount": amount
            })
        self.balances[sender] = balance - amount
        self.balances[to] = self.balances.get(to, 0) + amount
        logger.debug(f"[ledger:{self.asset_id}] {sender} -> {to}: {amount}")
    
    def snapshot(self) -> Dict[str, Any]:
        return {
            "balances": dict(self.balances),
            "allowances": dict(self.allowances),
            "total_supply": self.total_supply
        }
    
    def restore(self, state: Dict[str, Any]) -> None:
        state = copy.deepcopy(state)
        self.balances = state["balances"]
        self.allowances = state["allowances"]
        self.total_supply = state["total_supply"]


@contextmanager
def ledger_transaction(*ledgers: AssetLedger) -> Iterator[None]:
    """
    Run a block of ledger calls as a unit.
    
    Every ledger is snapshotted on entry; if the block raises, all of them are
    restored before the exception propagates.
    """
    unique = list({id(ledger): ledger for ledger in ledgers}.values())
    snapshots = [(ledger, ledger.snapshot()) for ledger in unique]
    try:
        yield
    except Exception:
        for ledger, state in snapshots:
            ledger.restore(state)
        logger.warning(f"[ledger] Rolled back {len(snapshots)} ledger(s) after failed transaction")
        raise

"""
TokenLedger Tests.
Balances, allowances, failure kinds and snapshot rollback.
"""

import pytest

from orderswap.errors import (
    TransferFailedError, InsufficientBalanceError, InsufficientAllowanceError
)
from orderswap.services.ledger import TokenLedger, ledger_transaction
from orderswap.util.identity import ZERO_ADDRESS, derive_address

ALICE = derive_address("ledger.alice")
BOB = derive_address("ledger.bob")
SPENDER = derive_address("ledger.spender")


@pytest.fixture
def ledger():
    ledger = TokenLedger("TKA")
    ledger.mint(ALICE, 500)
    return ledger


class TestTokenLedger:
    
    def test_mint_and_balance(self, ledger):
        assert ledger.balance_of(ALICE) == 500
        assert ledger.balance_of(BOB) == 0
        assert ledger.total_supply == 500
    
    def test_balance_of_accepts_lowercase(self, ledger):
        assert ledger.balance_of(ALICE.lower()) == 500
    
    def test_balance_of_malformed_holder_is_zero(self, ledger):
        assert ledger.balance_of("garbage") == 0
    
    def test_transfer(self, ledger):
        assert ledger.transfer(ALICE, BOB, 200) is True
        assert ledger.balance_of(ALICE) == 300
        assert ledger.balance_of(BOB) == 200
    
    def test_transfer_exceeding_balance(self, ledger):
        with pytest.raises(InsufficientBalanceError) as exc_info:
            ledger.transfer(ALICE, BOB, 501)
        
        assert exc_info.value.error_code == "INSUFFICIENT_BALANCE"
        assert exc_info.value.details["balance"] == 500
        assert ledger.balance_of(ALICE) == 500
    
    def test_zero_transfer_is_noop(self, ledger):
        assert ledger.transfer(ALICE, BOB, 0) is True
        assert ledger.balance_of(ALICE) == 500
    
    @pytest.mark.parametrize("amount", [-1, 1.5, "10", True])
    def test_invalid_amount(self, ledger, amount):
        with pytest.raises(TransferFailedError):
            ledger.transfer(ALICE, BOB, amount)
    
    def test_transfer_to_zero_address(self, ledger):
        with pytest.raises(TransferFailedError):
            ledger.transfer(ALICE, ZERO_ADDRESS, 1)
    
    def test_transfer_from_uses_allowance(self, ledger):
        ledger.approve(ALICE, SPENDER, 300)
        
        ledger.transfer_from(SPENDER, ALICE, BOB, 120)
        
        assert ledger.balance_of(BOB) == 120
        assert ledger.allowance(ALICE, SPENDER) == 180
    
    def test_transfer_from_without_allowance(self, ledger):
        with pytest.raises(InsufficientAllowanceError):
            ledger.transfer_from(SPENDER, ALICE, BOB, 1)
    
    def test_transfer_from_balance_checked_after_allowance(self, ledger):
        ledger.approve(ALICE, SPENDER, 1000)
        with pytest.raises(InsufficientBalanceError):
            ledger.transfer_from(SPENDER, ALICE, BOB, 600)
        assert ledger.allowance(ALICE, SPENDER) == 1000
    
    def test_approve_replaces_allowance(self, ledger):
        ledger.approve(ALICE, SPENDER, 100)
        ledger.approve(ALICE, SPENDER, 40)
        assert ledger.allowance(ALICE, SPENDER) == 40


class TestLedgerTransaction:
    
    def test_commit_keeps_changes(self, ledger):
        with ledger_transaction(ledger):
            ledger.transfer(ALICE, BOB, 100)
        
        assert ledger.balance_of(BOB) == 100
    
    def test_failure_restores_every_ledger(self, ledger):
        other = TokenLedger("TKB")
        other.mint(BOB, 50)
        ledger.approve(ALICE, SPENDER, 100)
        
        with pytest.raises(InsufficientBalanceError):
            with ledger_transaction(ledger, other):
                ledger.transfer_from(SPENDER, ALICE, BOB, 100)
                other.transfer(BOB, ALICE, 51)
        
        assert ledger.balance_of(ALICE) == 500
        assert ledger.balance_of(BOB) == 0
        assert ledger.allowance(ALICE, SPENDER) == 100
        assert other.balance_of(BOB) == 50
    
    def test_non_ledger_errors_also_roll_back(self, ledger):
        with pytest.raises(RuntimeError):
            with ledger_transaction(ledger):
                ledger.transfer(ALICE, BOB, 10)
                raise RuntimeError("boom")
        
        assert ledger.balance_of(BOB) == 0
    
    def test_duplicate_ledgers_snapshot_once(self, ledger):
        with pytest.raises(InsufficientBalanceError):
            with ledger_transaction(ledger, ledger):
                ledger.transfer(ALICE, BOB, 10)
                ledger.transfer(BOB, ALICE, 11)
        
        assert ledger.balance_of(ALICE) == 500

"""
Pytest Configuration - shared fixtures for the order registry tests.
Provides temp audit directories, environment isolation, funded ledgers
and deterministic test addresses.
"""

import logging
import os
import pytest
import tempfile
from pathlib import Path
from typing import Generator

from orderswap.exchange.event_bus import EventBus
from orderswap.services.ledger import TokenLedger
from orderswap.services.order_registry import OrderRegistry
from orderswap.util.identity import derive_address

ENV_KEYS = [
    "ORDERSWAP_REGISTRY_ADDRESS",
    "ORDERSWAP_AUDIT_ENABLED",
    "ORDERSWAP_AUDIT_DIR",
    "ORDERSWAP_LOG_LEVEL",
    "ORDERSWAP_LOG_DIR",
]


def ether(amount: int) -> int:
    """Whole units to 18-decimal base units."""
    return amount * 10 ** 18


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def setup_test_env():
    """Keep ORDERSWAP_* variables from leaking between tests."""
    saved = {key: os.environ.pop(key, None) for key in ENV_KEYS}
    
    yield
    
    for key in ENV_KEYS:
        os.environ.pop(key, None)
        if saved[key] is not None:
            os.environ[key] = saved[key]


@pytest.fixture
def owner() -> str:
    return derive_address("test.owner")


@pytest.fixture
def user1() -> str:
    return derive_address("test.user1")


@pytest.fixture
def user2() -> str:
    return derive_address("test.user2")


@pytest.fixture
def registry_address() -> str:
    return derive_address("test.registry")


@pytest.fixture
def token_a(owner, user1) -> TokenLedger:
    """Asset A: owner minted 1,000,000, user1 funded with 1000."""
    ledger = TokenLedger("TKA")
    ledger.mint(owner, ether(1_000_000))
    ledger.transfer(owner, user1, ether(1000))
    return ledger


@pytest.fixture
def token_b(owner, user2) -> TokenLedger:
    """Asset B: owner minted 1,000,000, user2 funded with 1000."""
    ledger = TokenLedger("TKB")
    ledger.mint(owner, ether(1_000_000))
    ledger.transfer(owner, user2, ether(1000))
    return ledger


@pytest.fixture
def event_bus(temp_dir) -> EventBus:
    return EventBus(audit_dir=str(temp_dir / "orders"))


@pytest.fixture
def registry(registry_address, token_a, token_b, event_bus) -> OrderRegistry:
    return OrderRegistry(
        registry_address=registry_address,
        ledgers={"TKA": token_a, "TKB": token_b},
        event_bus=event_bus,
    )


@pytest.fixture
def clean_root_logger():
    """Remove handlers added to the root logger during a test and restore its level."""
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    
    yield root
    
    for handler in list(root.handlers):
        if handler not in saved_handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(saved_level)

# Pytest configuration
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "deterministic: marks tests as deterministic")

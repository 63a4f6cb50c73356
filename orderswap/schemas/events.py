"""
Observation models emitted by the order registry.
"""

from datetime import datetime, timezone
from typing import Literal, Union

from pydantic import BaseModel, Field


class _RegistryEvent(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class OrderCreated(_RegistryEvent):
    """A new order was escrowed."""
    event: Literal["order_created"] = "order_created"
    depositor: str
    deposit_asset: str
    swap_asset: str
    deposit_amount: int


class TokenSwapped(_RegistryEvent):
    """An open order was fulfilled."""
    event: Literal["token_swapped"] = "token_swapped"
    fulfiller: str
    order_id: int


class OrderCancelled(_RegistryEvent):
    """An open order was cancelled by its depositor."""
    event: Literal["order_cancelled"] = "order_cancelled"
    canceller: str
    order_id: int


RegistryEvent = Union[OrderCreated, TokenSwapped, OrderCancelled]

"""
Order Schema - Pydantic models for escrowed swap orders.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class OrderStatus(str, Enum):
    """Order lifecycle state. OPEN is the only non-terminal state."""
    OPEN = "open"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Order(BaseModel):
    """One depositor's offer to exchange deposit_amount of one asset for swap_amount of another."""
    
    model_config = ConfigDict(validate_assignment=True)
    
    order_id: int = Field(..., ge=1, description="Registry-issued id, starting at 1")
    deposit_asset: str = Field(..., description="Asset held in escrow")
    swap_asset: str = Field(..., description="Asset requested in return")
    deposit_amount: int = Field(..., gt=0, description="Escrowed quantity")
    swap_amount: int = Field(..., gt=0, description="Requested quantity")
    depositor: str = Field(..., description="Checksum address of the creator")
    fulfiller: Optional[str] = Field(None, description="Checksum address of whoever completed the order")
    status: OrderStatus = OrderStatus.OPEN
    
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    closed_at: Optional[datetime] = None
    
    @model_validator(mode="after")
    def validate_assets(self):
        """Deposit and swap asset must differ."""
        if self.deposit_asset == self.swap_asset:
            raise ValueError("deposit_asset and swap_asset must differ")
        return self
    
    @property
    def is_open(self) -> bool:
        return self.status == OrderStatus.OPEN

"""
OrderRegistry - escrow-based token swap orders.

A depositor locks deposit_amount of one asset in registry custody and names
the swap_amount of another asset they want back. Anyone holding the swap
asset can fulfil the order, which pays the depositor and releases the escrow
to the fulfiller in one step. The depositor can cancel an open order to get
the escrow back.

Every mutating call runs under a single registry lock and inside a
ledger_transaction, so it either applies all of its balance and state
changes or none of them.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from orderswap.config import RegistryConfig, load_config
from orderswap.errors import (
    OrderSwapError,
    SameAssetNotAllowedError,
    ZeroValueNotAllowedError,
    InsufficientFundsError,
    InsufficientContractBalanceError,
    InvalidOrderIdError,
    OrderAlreadyCompletedError,
    OrderNotActiveError,
    UnauthorizedCallerError,
    UnknownAssetError,
    TransferFailedError,
    ConfigurationError,
)
from orderswap.exchange.event_bus import EventBus
from orderswap.observability.logs import configure_logging
from orderswap.protocols.asset_ledger import AssetLedger
from orderswap.schemas.events import OrderCreated, TokenSwapped, OrderCancelled
from orderswap.schemas.order import Order, OrderStatus
from orderswap.services.ledger import ledger_transaction
from orderswap.util.identity import normalize_identity

logger = logging.getLogger(__name__)


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class OrderRegistry:
    """Append-only registry of swap orders and custodian of their escrow."""
    
    def __init__(self, registry_address: str, ledgers: Optional[Dict[str, AssetLedger]] = None,
                 event_bus: Optional[EventBus] = None):
        self.address = normalize_identity(registry_address)
        self.ledgers: Dict[str, AssetLedger] = {}
        self.event_bus = event_bus or EventBus(audit_dir=None)
        
        self._orders: Dict[int, Order] = {}
        self._all_orders: List[int] = []
        self._user_orders: Dict[str, List[int]] = {}
        self._next_order_id = 1
        self._lock = threading.RLock()
        
        for asset_id, ledger in (ledgers or {}).items():
            self.add_asset(ledger, asset_id)
    
    @classmethod
    def from_config(cls, ledgers: Optional[Dict[str, AssetLedger]] = None,
                    config: Optional[RegistryConfig] = None,
                    setup_logs: bool = True) -> "OrderRegistry":
        """Build a registry and its event bus from environment configuration."""
        config = config or load_config()
        if setup_logs:
            configure_logging(config)
        return cls(
            registry_address=config.registry_address,
            ledgers=ledgers,
            event_bus=EventBus(audit_dir=config.effective_audit_dir),
        )
    
    def add_asset(self, ledger: AssetLedger, asset_id: Optional[str] = None) -> None:
        """Make an asset tradeable through the registry."""
        asset_id = asset_id or ledger.asset_id
        if not isinstance(asset_id, str) or not asset_id:
            raise ConfigurationError("Asset id must be a non-empty string", details={"asset": repr(asset_id)})
        with self._lock:
            self.ledgers[asset_id] = ledger
        logger.info(f"[order_registry] Asset {asset_id} registered")
    
    # ------------------------------------------------------------------
    # State-changing operations
    # ------------------------------------------------------------------
    
    def create_order(self, caller: str, deposit_asset: str, swap_asset: str,
                     deposit_amount: int, swap_amount: int) -> int:
        """
        Escrow deposit_amount of deposit_asset and open an order asking for
        swap_amount of swap_asset.
        
        The caller must have approved the registry address for deposit_amount
        on the deposit asset's ledger.
        
        Returns:
            The new order id
        
        Raises:
            InvalidCallerError, SameAssetNotAllowedError, ZeroValueNotAllowedError,
            UnknownAssetError, InsufficientFundsError, or the ledger's
            TransferFailedError
        """
        with self._lock:
            try:
                caller = normalize_identity(caller)
                
                if deposit_asset == swap_asset:
                    raise SameAssetNotAllowedError(details={"asset": str(deposit_asset)})
                
                if not (_is_positive_int(deposit_amount) and _is_positive_int(swap_amount)):
                    raise ZeroValueNotAllowedError(details={
                        "deposit_amount": str(deposit_amount),
                        "swap_amount": str(swap_amount)
                    })
                
                deposit_ledger = self._ledger(deposit_asset)
                self._ledger(swap_asset)
                
                balance = deposit_ledger.balance_of(caller)
                if balance < deposit_amount:
                    raise InsufficientFundsError(details={
                        "asset": deposit_asset,
                        "balance": balance,
                        "required": deposit_amount
                    })
                
                with ledger_transaction(deposit_ledger):
                    self._require_success(
                        deposit_ledger.transfer_from(self.address, caller, self.address, deposit_amount),
                        deposit_ledger, "transfer_from"
                    )
                    
                    order_id = self._next_order_id
                    order = Order(
                        order_id=order_id,
                        deposit_asset=deposit_asset,
                        swap_asset=swap_asset,
                        deposit_amount=deposit_amount,
                        swap_amount=swap_amount,
                        depositor=caller,
                    )
                
                self._orders[order_id] = order
                self._all_orders.append(order_id)
                self._user_orders.setdefault(caller, []).append(order_id)
                self._next_order_id = order_id + 1
                
            except OrderSwapError as e:
                self._reject("create_order", e, caller=str(caller), deposit_asset=str(deposit_asset),
                             swap_asset=str(swap_asset))
                raise
            
            logger.info(f"[order_registry] Order {order_id} created by {caller}: "
                        f"{deposit_amount} {deposit_asset} for {swap_amount} {swap_asset}")
            self.event_bus.emit(OrderCreated(
                depositor=caller,
                deposit_asset=deposit_asset,
                swap_asset=swap_asset,
                deposit_amount=deposit_amount
            ))
        return order_id
    
    def swap_token(self, caller: str, order_id: int) -> None:
        """
        Fulfil an open order: caller pays swap_amount of swap_asset to the
        depositor and receives the escrowed deposit_amount.
        
        The caller must have approved the registry address for swap_amount on
        the swap asset's ledger.
        """
        with self._lock:
            try:
                caller = normalize_identity(caller)
                order = self._open_order(order_id)
                
                swap_ledger = self._ledger(order.swap_asset)
                deposit_ledger = self._ledger(order.deposit_asset)
                
                balance = swap_ledger.balance_of(caller)
                if balance < order.swap_amount:
                    raise InsufficientFundsError(details={
                        "asset": order.swap_asset,
                        "balance": balance,
                        "required": order.swap_amount
                    })
                
                custody = deposit_ledger.balance_of(self.address)
                if custody < order.deposit_amount:
                    raise InsufficientContractBalanceError(details={
                        "asset": order.deposit_asset,
                        "balance": custody,
                        "required": order.deposit_amount
                    })
                
                with ledger_transaction(swap_ledger, deposit_ledger):
                    self._require_success(
                        swap_ledger.transfer_from(self.address, caller, order.depositor, order.swap_amount),
                        swap_ledger, "transfer_from"
                    )
                    self._require_success(
                        deposit_ledger.transfer(self.address, caller, order.deposit_amount),
                        deposit_ledger, "transfer"
                    )
                
                self._close(order, OrderStatus.COMPLETED, fulfiller=caller)
                
            except OrderSwapError as e:
                self._reject("swap_token", e, caller=str(caller), order_id=order_id)
                raise
            
            logger.info(f"[order_registry] Order {order_id} fulfilled by {caller}")
            self.event_bus.emit(TokenSwapped(fulfiller=caller, order_id=order_id))
    
    def cancel_order(self, caller: str, order_id: int) -> None:
        """Return the escrow of an open order to its depositor."""
        with self._lock:
            try:
                caller = normalize_identity(caller)
                order = self._open_order(order_id)
                
                if caller != order.depositor:
                    raise UnauthorizedCallerError(details={"order_id": order_id, "caller": caller})
                
                deposit_ledger = self._ledger(order.deposit_asset)
                with ledger_transaction(deposit_ledger):
                    self._require_success(
                        deposit_ledger.transfer(self.address, order.depositor, order.deposit_amount),
                        deposit_ledger, "transfer"
                    )
                
                self._close(order, OrderStatus.CANCELLED)
                
            except OrderSwapError as e:
                self._reject("cancel_order", e, caller=str(caller), order_id=order_id)
                raise
            
            logger.info(f"[order_registry] Order {order_id} cancelled by {caller}")
            self.event_bus.emit(OrderCancelled(canceller=caller, order_id=order_id))
    
    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    
    @property
    def next_order_id(self) -> int:
        with self._lock:
            return self._next_order_id
    
    @property
    def order_count(self) -> int:
        with self._lock:
            return len(self._all_orders)
    
    def get_order(self, order_id: int) -> Order:
        """Copy of an issued order."""
        with self._lock:
            return self._order(order_id).model_copy()
    
    def all_orders(self) -> List[int]:
        """Every issued order id in creation order."""
        with self._lock:
            return list(self._all_orders)
    
    def user_orders(self, depositor: str) -> List[int]:
        """Order ids created by depositor, in creation order."""
        depositor = normalize_identity(depositor)
        with self._lock:
            return list(self._user_orders.get(depositor, []))
    
    def open_orders(self) -> List[Order]:
        """Orders still awaiting fulfilment, by id."""
        with self._lock:
            return [self._orders[i].model_copy() for i in self._all_orders if self._orders[i].is_open]
    
    def custody_balance(self, asset_id: str) -> int:
        """Registry's own holding of an asset."""
        with self._lock:
            return self._ledger(asset_id).balance_of(self.address)
    
    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    
    def _ledger(self, asset_id: str) -> AssetLedger:
        ledger = self.ledgers.get(asset_id)
        if ledger is None:
            raise UnknownAssetError(f"No ledger registered for asset {asset_id!r}",
                                    details={"asset": str(asset_id)})
        return ledger
    
    def _order(self, order_id: int) -> Order:
        if isinstance(order_id, bool) or not isinstance(order_id, int) \
                or not 1 <= order_id < self._next_order_id:
            raise InvalidOrderIdError(details={
                "order_id": str(order_id),
                "next_order_id": self._next_order_id
            })
        return self._orders[order_id]
    
    def _open_order(self, order_id: int) -> Order:
        order = self._order(order_id)
        if order.status == OrderStatus.COMPLETED:
            raise OrderAlreadyCompletedError(details={"order_id": order_id})
        if order.status == OrderStatus.CANCELLED:
            raise OrderNotActiveError(details={"order_id": order_id})
        return order
    
    def _close(self, order: Order, status: OrderStatus, fulfiller: Optional[str] = None):
        self._orders[order.order_id] = order.model_copy(update={
            "status": status,
            "fulfiller": fulfiller,
            "closed_at": datetime.now(timezone.utc),
        })
    
    def _require_success(self, result: Any, ledger: AssetLedger, operation: str):
        # Ledgers may refuse by returning a falsy result instead of raising
        if not result:
            raise TransferFailedError(
                f"{operation} on {ledger.asset_id} reported failure",
                details={"asset": str(ledger.asset_id), "operation": operation}
            )
    
    def _reject(self, operation: str, error: OrderSwapError, **context: Any):
        logger.warning(f"[order_registry] {operation} rejected: {error.error_code} - {error.message}")
        self.event_bus.record_rejection(operation, error, **context)

"""
Event Bus - observation surface and audit logging for the order registry.
Fans registry events out to subscribers, keeps an in-memory history and
appends every event (and every rejected call) to a daily JSONL audit file.
"""

import json
import logging
import os
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from orderswap.errors import create_structured_error_response
from orderswap.schemas.events import RegistryEvent

logger = logging.getLogger("event_bus")

Subscriber = Callable[[RegistryEvent], None]


class EventBus:
    """Event bus for registry observations with an append-only audit trail."""
    
    def __init__(self, audit_dir: Optional[str] = "logs/orders", max_history: int = 1000):
        self.audit_dir = audit_dir
        self.max_history = max_history
        self._subscribers: List[Subscriber] = []
        self._history: List[RegistryEvent] = []
        self._lock = threading.Lock()
        
        # Ensure audit log directory exists
        if self.audit_dir:
            os.makedirs(self.audit_dir, exist_ok=True)
    
    @property
    def audit_log_path(self) -> Optional[str]:
        """Today's audit file (UTC date), None when auditing is disabled."""
        if not self.audit_dir:
            return None
        return os.path.join(self.audit_dir, f"{datetime.now(timezone.utc).strftime('%Y-%m-%d')}.jsonl")
    
    def subscribe(self, callback: Subscriber) -> None:
        """Register a callback for every emitted event."""
        with self._lock:
            self._subscribers.append(callback)
    
    def unsubscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)
    
    def emit(self, event: RegistryEvent) -> None:
        """
        Publish an event for a committed registry operation.
        
        Subscriber failures are logged; the operation that produced the event
        has already been applied and is not undone.
        """
        with self._lock:
            self._history.append(event)
            if len(self._history) > self.max_history:
                del self._history[0]
            subscribers = list(self._subscribers)
        
        self._log_audit_event(event.model_dump(mode="json"))
        logger.info(f"[event_bus] {event.event} emitted")
        
        for callback in subscribers:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"[event_bus] Subscriber {callback!r} failed on {event.event}: {e}", exc_info=True)
    
    def record_rejection(self, operation: str, error: Exception, **context: Any) -> None:
        """Audit a registry call that failed a precondition. Subscribers are not called."""
        entry = {
            "event": "order_rejected",
            "operation": operation,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        entry.update(create_structured_error_response(error))
        entry.update({key: value for key, value in context.items() if value is not None})
        self._log_audit_event(entry)
    
    def history(self, limit: int = 50) -> List[RegistryEvent]:
        """Most recent events, oldest first."""
        with self._lock:
            return list(self._history[-limit:]) if limit > 0 else []
    
    def _log_audit_event(self, event_data: Dict[str, Any]):
        """Log audit event to append-only JSONL file."""
        path = self.audit_log_path
        if path is None:
            return
        try:
            with open(path, "a") as f:
                f.write(json.dumps(event_data, default=str) + "\n")
        except Exception as e:
            logger.error(f"[event_bus] Failed to log audit event: {e}")
    
    def get_audit_tail(self, lines: int = 50) -> List[Dict[str, Any]]:
        """Get last N lines from today's audit log."""
        path = self.audit_log_path
        try:
            if path is None or not os.path.exists(path):
                return []
            
            with open(path, "r") as f:
                all_lines = f.readlines()
                tail_lines = all_lines[-lines:] if len(all_lines) > lines else all_lines
                
                return [json.loads(line.strip()) for line in tail_lines if line.strip()]
                
        except Exception as e:
            logger.error(f"[event_bus] Failed to read audit log: {e}")
            return []

# config.py
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv, find_dotenv

from orderswap.errors import ConfigurationError
from orderswap.util.identity import derive_address, is_valid_identity, normalize_identity

# Load nearest .env from project tree, don't override existing process env
load_dotenv(find_dotenv(usecwd=True), override=False)

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_LABEL = "orderswap.registry"


@dataclass(frozen=True)
class RegistryConfig:
    registry_address: str   # custodial identity on every asset ledger
    audit_enabled: bool
    audit_dir: str
    log_level: str
    log_dir: str

    @property
    def effective_audit_dir(self) -> Optional[str]:
        return self.audit_dir if self.audit_enabled else None


def _flag(name: str, default: str) -> bool:
    return (os.getenv(name) or default).strip().lower() in ("1", "true", "yes", "on")


def load_config() -> RegistryConfig:
    raw_address = (os.getenv("ORDERSWAP_REGISTRY_ADDRESS") or "").strip()
    if raw_address:
        if not is_valid_identity(raw_address):
            raise ConfigurationError(
                "ORDERSWAP_REGISTRY_ADDRESS must be a non-zero address",
                details={"value": raw_address}
            )
        registry_address = normalize_identity(raw_address)
    else:
        registry_address = derive_address(DEFAULT_REGISTRY_LABEL)

    log_level = (os.getenv("ORDERSWAP_LOG_LEVEL") or "INFO").strip().upper()
    if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        logger.warning(f"Unknown log level {log_level}, defaulting to INFO")
        log_level = "INFO"

    return RegistryConfig(
        registry_address=registry_address,
        audit_enabled=_flag("ORDERSWAP_AUDIT_ENABLED", "true"),
        audit_dir=(os.getenv("ORDERSWAP_AUDIT_DIR") or "logs/orders").strip(),
        log_level=log_level,
        log_dir=(os.getenv("ORDERSWAP_LOG_DIR") or ".run").strip(),
    )


def redacted(cfg: RegistryConfig) -> dict:
    return {
        "registry_address": cfg.registry_address[:6] + "..." + cfg.registry_address[-4:],
        "audit_enabled": cfg.audit_enabled,
        "audit_dir": cfg.audit_dir,
        "log_level": cfg.log_level,
        "log_dir": cfg.log_dir,
    }

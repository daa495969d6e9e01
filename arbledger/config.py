# arbledger/config.py
import copy
import os
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError

ONE_UNIT = 10 ** 24  # one whole unit of the settlement currency, in minor units

DEFAULTS: Dict[str, Any] = {
    "system": {
        "environment": "testnet",
        "log_level": "INFO",
        "strict_lifecycle": True,
    },
    "ledger": {
        "name": "ArbitrageAI Cross-Chain Agent",
        "version": "1.0.0",
        "owner": "ledger.owner",
        "min_deposit": ONE_UNIT,
        "minor_unit_scale": ONE_UNIT,
        "capture_ratio": "0.8",
        "gas_fee_placeholder": "0.01",
    },
    "audit": {
        "execution_log": "logs/executions.csv",
    },
    "settlement": {
        "mode": "log",
        "webhook_url": "",
        "timeout_seconds": 10,
    },
    "markets": {
        "exchange_a": "binance",
        "exchange_b": "okx",
        "pairs": ["ETH/USDT", "NEAR/USDT", "BTC/USDT"],
        "cache_seconds": 30,
        "min_opportunity_pct": 0.5,
        "network_timeout_ms": 10000,
    },
    "storage": {
        "snapshot_path": "data/ledger.json",
    },
}

SETTLEMENT_MODES = ("log", "webhook")

def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out

def validate(cfg: Dict[str, Any]) -> Dict[str, Any]:
    ledger = cfg["ledger"]
    if int(ledger["minor_unit_scale"]) <= 0:
        raise ConfigError("ledger.minor_unit_scale must be positive")
    if int(ledger["min_deposit"]) < 0:
        raise ConfigError("ledger.min_deposit must not be negative")
    ratio = float(ledger["capture_ratio"])
    if not 0 < ratio <= 1:
        raise ConfigError("ledger.capture_ratio must be in (0, 1]")

    mode = cfg["settlement"]["mode"]
    if mode not in SETTLEMENT_MODES:
        raise ConfigError(f"settlement.mode must be one of {SETTLEMENT_MODES}, got '{mode}'")
    if mode == "webhook" and not cfg["settlement"]["webhook_url"]:
        raise ConfigError("settlement.webhook_url is required in webhook mode")

    if cfg["markets"]["exchange_a"] == cfg["markets"]["exchange_b"]:
        raise ConfigError("Need two different markets for arbitrage")
    return cfg

def load_config(path: Optional[str] = "config.yaml") -> Dict[str, Any]:
    """
    Reads config.yaml on top of the built-in defaults.
    A missing file yields the defaults.
    """
    raw: Dict[str, Any] = {}
    if path and os.path.exists(path):
        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return validate(_merge(DEFAULTS, raw))

# arbledger/models.py
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict
import base64
import time

class IntentStatus(Enum):
    """
    Lifecycle states of an arbitrage intent.
    ACTIVE is initial, EXECUTED is terminal.
    """
    ACTIVE = "Active"
    PAUSED = "Paused"
    EXECUTED = "Executed"

@dataclass(slots=True)
class Intent:
    """
    A standing, owner-scoped declaration to act once the price discrepancy
    between two markets reaches min_profit_threshold (a percentage).
    Only `status` changes after creation.
    """
    id: str
    owner: str
    token_pair: str
    min_profit_threshold: Decimal
    status: IntentStatus
    created_at: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "owner": self.owner,
            "token_pair": self.token_pair,
            "min_profit_threshold": str(self.min_profit_threshold),
            "status": self.status.value,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Intent":
        return cls(
            id=data["id"],
            owner=data["owner"],
            token_pair=data["token_pair"],
            min_profit_threshold=Decimal(data["min_profit_threshold"]),
            status=IntentStatus(data["status"]),
            created_at=int(data["created_at"]),
        )

@dataclass(frozen=True, slots=True)
class Execution:
    """
    Immutable record of one completed arbitrage action.
    owner and token_pair are copied from the intent at execution time.
    """
    id: str
    intent_id: str
    owner: str
    token_pair: str
    price_diff: Decimal
    profit: Decimal
    gas_fees: Decimal
    tx_hash: str
    timestamp: int
    price_a: Decimal
    price_b: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "intent_id": self.intent_id,
            "owner": self.owner,
            "token_pair": self.token_pair,
            "price_diff": str(self.price_diff),
            "profit": str(self.profit),
            "gas_fees": str(self.gas_fees),
            "tx_hash": self.tx_hash,
            "timestamp": self.timestamp,
            "price_a": str(self.price_a),
            "price_b": str(self.price_b),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Execution":
        return cls(
            id=data["id"],
            intent_id=data["intent_id"],
            owner=data["owner"],
            token_pair=data["token_pair"],
            price_diff=Decimal(data["price_diff"]),
            profit=Decimal(data["profit"]),
            gas_fees=Decimal(data["gas_fees"]),
            tx_hash=data["tx_hash"],
            timestamp=int(data["timestamp"]),
            price_a=Decimal(data["price_a"]),
            price_b=Decimal(data["price_b"]),
        )

@dataclass(frozen=True, slots=True)
class CrossChainSignature:
    """
    Opaque authorization produced by another chain for an execution.
    Stored as-is, the binding to the execution is never checked here.
    """
    signature: bytes
    public_key: bytes
    chain_id: int
    nonce: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signature": base64.b64encode(self.signature).decode("ascii"),
            "public_key": base64.b64encode(self.public_key).decode("ascii"),
            "chain_id": self.chain_id,
            "nonce": self.nonce,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CrossChainSignature":
        return cls(
            signature=base64.b64decode(data["signature"]),
            public_key=base64.b64decode(data["public_key"]),
            chain_id=int(data["chain_id"]),
            nonce=int(data["nonce"]),
        )

@dataclass(slots=True)
class Quote:
    """Last traded price of a pair on one market, as read by the price feed."""
    market: str
    symbol: str
    price: float
    timestamp: float

    @property
    def age(self) -> float:
        """Returns the age of the quote in seconds."""
        return time.time() - self.timestamp

@dataclass(slots=True)
class Opportunity:
    """
    A price discrepancy found by the opportunity scan.
    Feeds execute_arbitrage with price_a / price_b.
    """
    token_pair: str
    market_a: str
    market_b: str
    price_a: float
    price_b: float
    price_diff: float
    profit_percentage: float
    timestamp: float

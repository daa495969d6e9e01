# arbledger/engine.py
import logging
import threading
import time
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from .config import ONE_UNIT
from .errors import InvalidInput, PreconditionFailed
from .execution_ledger import ExecutionLedger
from .ids import EXECUTIONS, INTENTS, MonotonicIdAllocator
from .intent_registry import IntentRegistry
from .models import Execution, Intent
from .pricing import Number, capture, parse_amount, spread, to_minor_units
from .profit import ProfitAccumulator
from .settlement import LoggingSettlement, SettlementCollaborator, SettlementHandle
from .signatures import CrossChainSignatureStore, SignatureVerifier

class ArbitrageEngine:
    """
    Orchestrates intents, executions, profit totals and cross-chain signatures.

    Every public call runs under one engine-wide lock and either completes or
    raises a LedgerError with no state changed. The only outbound effect is
    the fire-and-forget settlement dispatch at the end of an execution.
    """
    def __init__(
        self,
        owner: str,
        logger: logging.Logger,
        settlement: Optional[SettlementCollaborator] = None,
        clock: Optional[Callable[[], int]] = None,
        min_deposit: int = ONE_UNIT,
        minor_unit_scale: int = ONE_UNIT,
        capture_ratio: Number = "0.8",
        gas_fee: Number = "0.01",
        strict_lifecycle: bool = True,
        verifier: Optional[SignatureVerifier] = None,
        name: str = "ArbitrageAI Cross-Chain Agent",
        version: str = "1.0.0",
    ):
        self.owner = owner
        self.name = name
        self.version = version
        self.logger = logger
        self.settlement = settlement or LoggingSettlement(logger)
        self.clock = clock or time.time_ns
        self.minor_unit_scale = minor_unit_scale
        self.capture_ratio = parse_amount(capture_ratio, "capture_ratio")
        self.gas_fee = parse_amount(gas_fee, "gas_fee")

        self.ids = MonotonicIdAllocator((INTENTS, EXECUTIONS))
        self.intents = IntentRegistry(self.ids, min_deposit, logger, strict_lifecycle=strict_lifecycle)
        self.executions = ExecutionLedger()
        self.profits = ProfitAccumulator()
        self.signatures = CrossChainSignatureStore(logger, verifier)

        self._lock = threading.RLock()
        self._last_tick = 0

    @classmethod
    def from_config(cls, config: Dict[str, Any], logger: logging.Logger, settlement: Optional[SettlementCollaborator] = None, **kwargs) -> "ArbitrageEngine":
        ledger = config["ledger"]
        return cls(
            owner=ledger["owner"],
            logger=logger,
            settlement=settlement,
            min_deposit=int(ledger["min_deposit"]),
            minor_unit_scale=int(ledger["minor_unit_scale"]),
            capture_ratio=str(ledger["capture_ratio"]),
            gas_fee=str(ledger["gas_fee_placeholder"]),
            strict_lifecycle=bool(config["system"]["strict_lifecycle"]),
            name=ledger["name"],
            version=ledger["version"],
            **kwargs,
        )

    # --- INTENT MANAGEMENT ---

    def create_intent(self, caller: str, token_pair: str, min_profit_threshold: Number, attached_value: int) -> str:
        with self._lock:
            return self.intents.create(caller, token_pair, min_profit_threshold, attached_value, self._now())

    def pause_intent(self, intent_id: str, caller: str):
        with self._lock:
            self.intents.pause(intent_id, caller)

    def resume_intent(self, intent_id: str, caller: str):
        with self._lock:
            self.intents.resume(intent_id, caller)

    # --- ARBITRAGE EXECUTION ---

    def execute_arbitrage(self, intent_id: str, caller: str, price_a: Number, price_b: Number, attached_value: int = 0) -> SettlementHandle:
        """
        Records the execution of an Active intent when the observed price
        discrepancy reaches its threshold, then issues the settlement call.

        Returns:
            SettlementHandle for the issued (never awaited) settlement call.
        """
        with self._lock:
            intent = self.intents.require_executable(intent_id, caller)
            if attached_value < 0:
                raise InvalidInput("Attached value must not be negative", field="attached_value", value=str(attached_value))

            a = parse_amount(price_a, "price_a")
            b = parse_amount(price_b, "price_b")
            price_diff, profit_pct = spread(a, b)

            if profit_pct < intent.min_profit_threshold:
                raise PreconditionFailed(
                    f"Profit below threshold ({profit_pct:.4f}% < {intent.min_profit_threshold}%)",
                    record_id=intent_id,
                )

            execution = self._record_execution(intent, a, b, price_diff)

        return self._dispatch(execution)

    def _record_execution(self, intent: Intent, price_a: Decimal, price_b: Decimal, price_diff: Decimal) -> Execution:
        # Build everything first so a failure here leaves no trace.
        execution_id = str(self.ids.peek(EXECUTIONS))
        profit = capture(price_diff, self.capture_ratio)
        profit_minor = to_minor_units(profit, self.minor_unit_scale)
        execution = Execution(
            id=execution_id,
            intent_id=intent.id,
            owner=intent.owner,
            token_pair=intent.token_pair,
            price_diff=price_diff,
            profit=profit,
            gas_fees=self.gas_fee,
            tx_hash=self.settlement.tx_reference(execution_id),
            timestamp=self._now(),
            price_a=price_a,
            price_b=price_b,
        )

        # Commit
        self.ids.next(EXECUTIONS)
        self.executions.record(execution)
        self.profits.add(intent.owner, profit_minor)
        self.intents.mark_executed(intent.id)

        self.logger.info(f"✅ Executed arbitrage {execution_id} for intent {intent.id} | {intent.token_pair} | Diff: {price_diff} | Profit: {profit}")
        return execution

    def _dispatch(self, execution: Execution) -> SettlementHandle:
        try:
            return self.settlement.dispatch(execution)
        except Exception as e:
            # The execution is already committed; settlement is not reconciled here.
            self.logger.critical(f"💀 SETTLEMENT NOT ISSUED for exec {execution.id}: {e}")
            return SettlementHandle(execution.id, execution.tx_hash, "undelivered", time.time())

    # --- CROSS-CHAIN SIGNATURES ---

    def store_cross_chain_signature(self, execution_id: str, signature: bytes, public_key: bytes, chain_id: int, nonce: int):
        with self._lock:
            self.signatures.store_signature(execution_id, signature, public_key, chain_id, nonce)

    def verify_cross_chain_signature(self, execution_id: str) -> bool:
        with self._lock:
            return self.signatures.verify_signature(execution_id)

    # --- VIEWS ---

    def get_user_intents(self, user: str) -> List[Intent]:
        with self._lock:
            return self.intents.list_for(user)

    def get_execution_history(self, user: str) -> List[Execution]:
        with self._lock:
            return self.executions.history_for(user)

    def get_total_profit(self, user: str) -> int:
        with self._lock:
            return self.profits.total_for(user)

    def get_intent(self, intent_id: str) -> Optional[Intent]:
        with self._lock:
            return self.intents.get(intent_id)

    def get_execution(self, execution_id: str) -> Optional[Execution]:
        with self._lock:
            return self.executions.get(execution_id)

    def get_contract_info(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "name": self.name,
                "version": self.version,
                "owner": self.owner,
                "total_intents": self.ids.issued(INTENTS),
                "total_executions": self.ids.issued(EXECUTIONS),
            }

    def _now(self) -> int:
        # Logical clock never goes backwards, even if the wall clock does.
        self._last_tick = max(self._last_tick, int(self.clock()))
        return self._last_tick

# arbledger/storage.py
"""
JSON snapshot of the full ledger state (state/<file>.json style).

Each logical collection lives under its own top-level key so per-user
sub-collections of intents and executions never share a namespace.
"""
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

from .engine import ArbitrageEngine
from .errors import SnapshotError
from .ids import EXECUTIONS, INTENTS
from .models import CrossChainSignature, Execution, Intent

SNAPSHOT_FORMAT = 1

def dump_state(engine: ArbitrageEngine) -> Dict[str, Any]:
    with engine._lock:
        return {
            "format": SNAPSHOT_FORMAT,
            "owner": engine.owner,
            "next_intent_id": engine.ids.peek(INTENTS),
            "next_execution_id": engine.ids.peek(EXECUTIONS),
            "intents": {k: v.to_dict() for k, v in engine.intents.intents.items()},
            "executions": {k: v.to_dict() for k, v in engine.executions.executions.items()},
            engine.intents.by_user.namespace: engine.intents.by_user.to_dict(),
            engine.executions.by_user.namespace: engine.executions.by_user.to_dict(),
            "user_profits": {user: str(total) for user, total in engine.profits.totals.items()},
            "cross_chain_sigs": {k: v.to_dict() for k, v in engine.signatures.records.items()},
        }

def restore_state(engine: ArbitrageEngine, data: Dict[str, Any], source: str = "<memory>"):
    """
    Loads a dumped state into a freshly constructed engine.
    Counters are restored so issuance continues after the last persisted id.
    """
    if data.get("format") != SNAPSHOT_FORMAT:
        raise SnapshotError(source, f"unsupported format {data.get('format')!r}")

    try:
        intents = {k: Intent.from_dict(v) for k, v in data["intents"].items()}
        executions = {k: Execution.from_dict(v) for k, v in data["executions"].items()}
        sigs = {k: CrossChainSignature.from_dict(v) for k, v in data["cross_chain_sigs"].items()}
        profits = {user: int(total) for user, total in data["user_profits"].items()}
        user_intents = data["user_intents"]
        user_executions = data["user_executions"]
        next_intent = int(data["next_intent_id"])
        next_execution = int(data["next_execution_id"])
    except (KeyError, TypeError, ValueError, ArithmeticError) as e:
        raise SnapshotError(source, f"malformed record ({e})")

    _check_collection(source, "intents", intents, next_intent, user_intents)
    _check_collection(source, "executions", executions, next_execution, user_executions)

    with engine._lock:
        if engine.intents.intents or engine.executions.executions:
            raise SnapshotError(source, "engine already holds state")
        if next_intent < engine.ids.peek(INTENTS) or next_execution < engine.ids.peek(EXECUTIONS):
            raise SnapshotError(source, "counters behind the engine's counters")
        engine.ids.restore(INTENTS, next_intent)
        engine.ids.restore(EXECUTIONS, next_execution)
        engine.intents.intents = intents
        engine.intents.by_user.load(user_intents)
        engine.executions.executions = executions
        engine.executions.by_user.load(user_executions)
        engine.profits.totals = profits
        engine.signatures.records = sigs

def _check_collection(source: str, name: str, records: Dict[str, Any], next_id: int, by_user: Any):
    """
    Rejects snapshots whose counter would reissue a stored id, or whose
    per-user index points at records that do not exist.
    """
    if next_id < 1:
        raise SnapshotError(source, f"next id for {name} must be >= 1, got {next_id}")
    for key, record in records.items():
        if record.id != key:
            raise SnapshotError(source, f"{name} key {key} holds record {record.id}")
        if key.isdigit() and int(key) >= next_id:
            raise SnapshotError(source, f"{name} id {key} not below next id {next_id}")
    if not isinstance(by_user, dict):
        raise SnapshotError(source, f"user index for {name} must be an object")
    for user, ids in by_user.items():
        if not isinstance(ids, list):
            raise SnapshotError(source, f"user index for {name}/{user} must be a list")
        missing = [i for i in ids if not isinstance(i, str) or i not in records]
        if missing:
            raise SnapshotError(source, f"user index for {name}/{user} references unknown ids {missing}")

def save_snapshot(engine: ArbitrageEngine, path: str):
    """Writes the snapshot atomically (temp file + replace)."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(dump_state(engine), indent=2)

    fd, tmp = tempfile.mkstemp(dir=str(target.parent), prefix=f".{target.name}.")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(payload)
        os.replace(tmp, target)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise

def load_snapshot(engine: ArbitrageEngine, path: str) -> bool:
    """
    Restores `engine` from `path`.
    Returns False when no snapshot exists yet.
    """
    p = Path(path)
    if not p.exists():
        return False
    try:
        data = json.loads(p.read_text())
    except json.JSONDecodeError as e:
        raise SnapshotError(path, f"invalid JSON ({e})")
    if not isinstance(data, dict):
        raise SnapshotError(path, "top level must be an object")
    restore_state(engine, data, source=path)
    engine.logger.info(f"💾 Restored ledger from {path}: {len(engine.intents.intents)} intents, {len(engine.executions)} executions")
    return True

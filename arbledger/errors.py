# arbledger/errors.py
from typing import Optional


class LedgerError(Exception):
    """
    Base class for every synchronous rejection raised by the ledger.
    A rejected call leaves all ledger state unchanged.
    """
    def __init__(self, msg: str):
        super().__init__(msg)
        self.msg = msg


class InvalidInput(LedgerError):
    """Malformed numeric string, negative amount or zero price."""
    def __init__(self, msg: str, field: Optional[str] = None, value: Optional[str] = None):
        super().__init__(msg)
        self.field = field
        self.value = value


class InsufficientDeposit(InvalidInput):
    """
    Raised by create_intent when the attached value is below the minimum deposit.
    Nothing is allocated or stored.
    """
    def __init__(self, required: int, attached: int):
        super().__init__(f"Minimum deposit of {required} required, got {attached}", field="attached_value", value=str(attached))
        self.required = required
        self.attached = attached


class NotFound(LedgerError):
    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class Unauthorized(LedgerError):
    """Caller is not the owner of the record it tried to act on."""
    def __init__(self, action: str, record_id: str, caller: str):
        super().__init__(f"Only intent owner can {action} (intent {record_id}, caller {caller})")
        self.action = action
        self.record_id = record_id
        self.caller = caller


class PreconditionFailed(LedgerError):
    """Wrong lifecycle status or profit below the intent's threshold."""
    def __init__(self, msg: str, record_id: Optional[str] = None):
        super().__init__(msg)
        self.record_id = record_id


class ConfigError(Exception):
    """Raised while loading config.yaml when a value is out of range."""


class SnapshotError(Exception):
    """Raised when a persisted snapshot cannot be decoded."""
    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot load snapshot {path}: {reason}")
        self.path = path
        self.reason = reason

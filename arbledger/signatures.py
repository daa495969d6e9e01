# arbledger/signatures.py
import logging
from typing import Dict, Optional

from .errors import InvalidInput
from .models import CrossChainSignature

class SignatureVerifier:
    """
    Extension point for cross-chain authorization checks.
    This placeholder accepts any stored record; a real verifier would check
    the signature against the public key and the execution payload.
    """
    def verify(self, execution_id: str, record: CrossChainSignature) -> bool:
        return True

class CrossChainSignatureStore:
    """
    Inert storage of authorization records keyed by execution id.
    Writes overwrite unconditionally and the execution id is not checked.
    """
    def __init__(self, logger: logging.Logger, verifier: Optional[SignatureVerifier] = None):
        self.logger = logger
        self.verifier = verifier or SignatureVerifier()
        self.records: Dict[str, CrossChainSignature] = {}

    def store_signature(self, execution_id: str, signature: bytes, public_key: bytes, chain_id: int, nonce: int):
        if chain_id < 0 or nonce < 0:
            raise InvalidInput("chain_id and nonce must be unsigned integers", field="chain_id" if chain_id < 0 else "nonce")
        self.records[execution_id] = CrossChainSignature(
            signature=bytes(signature),
            public_key=bytes(public_key),
            chain_id=chain_id,
            nonce=nonce,
        )
        self.logger.info(f"🔏 Stored cross-chain signature for execution {execution_id} (chain {chain_id}, nonce {nonce})")

    def verify_signature(self, execution_id: str) -> bool:
        record = self.records.get(execution_id)
        if record is None:
            return False
        return self.verifier.verify(execution_id, record)

    def get(self, execution_id: str) -> Optional[CrossChainSignature]:
        return self.records.get(execution_id)

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional
import hashlib
import hmac
import os
import threading
import time
import orjson

from .utils import sha256_bytes


@dataclass
class AuditEvent:
    ts_unix: float
    kind: str
    payload: Dict[str, Any]


class AuditChainError(ValueError):
    pass


class AuditLogger:
    """Append-only, hash-chained JSONL trail of engine activity.

    Each line links to the previous one through `prev_hash`; with a
    `sign_secret` every line also carries an HMAC-SHA256 signature.
    """

    def __init__(self, path: str, actor: str = "engine", sign_secret: Optional[str] = None, verify_on_start: bool = False):
        self.path = path
        self.actor = actor
        self.sign_secret = sign_secret
        self.last_hash: Optional[str] = None
        self.seq = 0
        self._lock = threading.Lock()
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        if os.path.exists(self.path):
            if verify_on_start:
                self.verify_chain(raise_on_failure=True)
            with open(self.path, "rb") as f:
                lines = [line for line in f.readlines() if line.strip()]
            if lines:
                last = orjson.loads(lines[-1])
                self.last_hash = last.get("hash")
                self.seq = int(last.get("seq", 0))

    def _sign(self, serialized: bytes) -> str:
        return hmac.new(self.sign_secret.encode("utf-8"), msg=serialized, digestmod=hashlib.sha256).hexdigest()

    def write(self, kind: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            self.seq += 1
            entry = asdict(AuditEvent(ts_unix=time.time(), kind=kind, payload=payload))
            entry["actor"] = self.actor
            entry["seq"] = self.seq
            entry["prev_hash"] = self.last_hash
            entry["hash_alg"] = "sha256"
            entry["sig_alg"] = "hmac-sha256" if self.sign_secret else None
            serialized = orjson.dumps(entry, option=orjson.OPT_SORT_KEYS)
            entry["hash"] = sha256_bytes(serialized)
            if self.sign_secret:
                entry["sig"] = self._sign(serialized)
            self.last_hash = entry["hash"]
            with open(self.path, "ab") as f:
                f.write(orjson.dumps(entry) + b"\n")

    def entries(self, kind: Optional[str] = None) -> List[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return []
        with open(self.path, "rb") as f:
            rows = [orjson.loads(line) for line in f if line.strip()]
        if kind is None:
            return rows
        return [r for r in rows if r.get("kind") == kind]

    def verify_chain(self, raise_on_failure: bool = False) -> bool:
        """Check sequence numbers, hashes, prev-hash links and signatures."""
        try:
            prev_hash = None
            for expected_seq, data in enumerate(self.entries(), start=1):
                if data.get("seq") != expected_seq:
                    raise AuditChainError(f"Seq mismatch at {expected_seq}")
                body = dict(data)
                body.pop("hash", None)
                sig = body.pop("sig", None)
                serialized = orjson.dumps(body, option=orjson.OPT_SORT_KEYS)
                if data.get("hash") != sha256_bytes(serialized):
                    raise AuditChainError(f"Hash mismatch at seq {expected_seq}")
                if body.get("prev_hash") != prev_hash:
                    raise AuditChainError(f"Prev hash mismatch at seq {expected_seq}")
                if self.sign_secret and sig and sig != self._sign(serialized):
                    raise AuditChainError(f"Signature mismatch at seq {expected_seq}")
                prev_hash = data["hash"]
        except (AuditChainError, orjson.JSONDecodeError):
            if raise_on_failure:
                raise
            return False
        return True

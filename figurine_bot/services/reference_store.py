"""
Persistent reference store - bidirectional phone <-> reference token map.

A reference token is the opaque identifier we hand to the payment side
(checkout link query string, charge correlation id) so a payment
notification can be traced back to a chat identity. Tokens are created
lazily, once per phone, never deleted, and written to disk before being
returned so they survive restarts.
"""

import json
import logging
import secrets
import threading
from pathlib import Path

logger = logging.getLogger(__name__)

REFS_FILENAME = "refs.json"


class ReferenceStore:
    """phone -> ref and ref -> phone, persisted as one JSON document."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._phone_to_ref: dict[str, str] = {}
        self._ref_to_phone: dict[str, str] = {}
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f) or {}
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load reference map from {self.path}: {e}")
            return

        self._phone_to_ref = dict(data.get("phoneToRef") or {})
        self._ref_to_phone = dict(data.get("refToPhone") or {})
        # Rebuild the reverse side from the forward side so the two stay a bijection
        for phone, ref in self._phone_to_ref.items():
            self._ref_to_phone.setdefault(ref, phone)
        logger.info(f"Loaded {len(self._phone_to_ref)} customer references from {self.path}")

    def _save(self, phone_to_ref: dict[str, str], ref_to_phone: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(
                {"refToPhone": ref_to_phone, "phoneToRef": phone_to_ref},
                f,
                indent=2,
            )
        tmp_path.replace(self.path)

    def get_or_create_ref(self, phone: str) -> str:
        """
        Return the customer's reference token, creating and persisting it on first use.

        Idempotent: later calls for the same phone return the cached token without I/O.
        Raises OSError when the token cannot be persisted; nothing is cached then.
        """
        existing = self._phone_to_ref.get(phone)
        if existing:
            return existing

        with self._lock:
            existing = self._phone_to_ref.get(phone)
            if existing:
                return existing

            ref = secrets.token_hex(8)
            while ref in self._ref_to_phone:
                ref = secrets.token_hex(8)

            # Persist first so a failed write leaves nothing cached
            phone_to_ref = {**self._phone_to_ref, phone: ref}
            ref_to_phone = {**self._ref_to_phone, ref: phone}
            self._save(phone_to_ref, ref_to_phone)
            self._phone_to_ref = phone_to_ref
            self._ref_to_phone = ref_to_phone

        logger.info(f"Created reference {ref} for {phone}")
        return ref

    def ref_to_phone(self, ref: str | None) -> str | None:
        if not ref:
            return None
        return self._ref_to_phone.get(ref)

    def phone_to_ref(self, phone: str) -> str | None:
        return self._phone_to_ref.get(phone)

    def __len__(self) -> int:
        return len(self._phone_to_ref)

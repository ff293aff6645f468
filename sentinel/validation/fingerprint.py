"""
Fingerprint registry of funded content.

Content is normalized (lowercased, whitespace and punctuation removed) before
hashing, so formatting edits do not bypass duplicate detection. A fingerprint
is registered only after a payout completes; the registry therefore blocks
re-funding, not re-evaluation.
"""

import hashlib
import json
import re
import threading
from pathlib import Path
from typing import Optional, Set, Union
import logging

logger = logging.getLogger(__name__)

_CONTROL_WS = re.compile(r"[\n\r\t]")
_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^A-Za-z0-9_]")


def normalize_content(text: str) -> str:
    """Lowercase and strip whitespace and non-alphanumeric characters."""
    text = text.lower()
    text = _CONTROL_WS.sub(" ", text)
    text = _WHITESPACE.sub("", text)
    return _NON_WORD.sub("", text)


def fingerprint(content: str) -> str:
    """SHA-256 hex digest of normalized content."""
    return hashlib.sha256(normalize_content(content).encode("utf-8")).hexdigest()


class FingerprintRegistry:
    """
    Thread-safe set of funded content fingerprints persisted as a JSON list.

    Besides the funded set, the registry tracks reservations: a submission
    must reserve its fingerprint before paying out so two concurrent
    submissions of the same content can never both be funded.
    """

    def __init__(self, path: Optional[Union[str, Path]] = "funded_hashes.json"):
        """
        Initialize the registry and load the persisted set.

        Args:
            path: JSON file holding funded fingerprints; None keeps the
                registry in memory only
        """
        self.path = Path(path) if path is not None else None
        self._lock = threading.RLock()
        self._funded: Set[str] = set()
        self._reserved: Set[str] = set()
        self._load()

    def _load(self):
        if self.path is None or not self.path.exists():
            return

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, list) or not all(isinstance(h, str) for h in data):
                raise ValueError("expected a JSON list of hex digests")
            self._funded = set(data)
            logger.info(f"Loaded {len(self._funded)} funded hashes from {self.path}")
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load fingerprint registry {self.path}: {e}; starting empty")
            self._funded = set()

    def _save(self):
        if self.path is None:
            return

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(sorted(self._funded), indent=2), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            logger.error(f"Failed to save fingerprint registry {self.path}: {e}")

    def fingerprint(self, content: str) -> str:
        return fingerprint(content)

    def is_duplicate(self, content: str) -> bool:
        """Check whether this content was already funded."""
        digest = fingerprint(content)
        with self._lock:
            return digest in self._funded

    def contains(self, digest: str) -> bool:
        with self._lock:
            return digest in self._funded

    def try_reserve(self, content: str) -> bool:
        """
        Reserve the content's fingerprint for a payout.

        Returns:
            False if the content is already funded or reserved by another
            in-flight payout
        """
        digest = fingerprint(content)
        with self._lock:
            if digest in self._funded or digest in self._reserved:
                return False
            self._reserved.add(digest)
            return True

    def release(self, content: str):
        """Drop a reservation after a payout that did not complete."""
        digest = fingerprint(content)
        with self._lock:
            self._reserved.discard(digest)

    def register_success(self, content: str) -> str:
        """
        Record a completed payout and persist the registry.

        Returns:
            The registered fingerprint
        """
        digest = fingerprint(content)
        with self._lock:
            self._reserved.discard(digest)
            self._funded.add(digest)
            self._save()
        logger.info(f"Registered funded fingerprint {digest[:12]}...")
        return digest

    def __len__(self) -> int:
        with self._lock:
            return len(self._funded)

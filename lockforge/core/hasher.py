"""Digest helpers for artifact verification and document fingerprints.

Every file hash in a lock document is recorded under the single algorithm
named by ``hash-algorithm``.  Only fixed-length algorithms from
``hashlib.algorithms_guaranteed`` are accepted so that a recorded hash can
be length-checked at parse time.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from typing import Any

SUPPORTED_HASH_ALGORITHMS: frozenset[str] = frozenset(
    name for name in hashlib.algorithms_guaranteed if not name.startswith("shake_")
)


def digest_length(algorithm: str) -> int:
    """Return the hex digest length produced by *algorithm*."""
    return hashlib.new(algorithm).digest_size * 2


def compute_digest(data: bytes, algorithm: str = "sha256") -> str:
    """Return the lowercase hex digest of *data* under *algorithm*."""
    return hashlib.new(algorithm, data).hexdigest()


def digests_match(data: bytes, expected: str, algorithm: str) -> bool:
    """Constant-time comparison of *data*'s digest against *expected*."""
    return hmac.compare_digest(compute_digest(data, algorithm), expected.lower())


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact."""
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True, default=str
    ).encode("utf-8")


def document_fingerprint(payload: dict[str, Any]) -> str:
    """SHA-256 of a lock document's canonical JSON form.

    Used by the CLI to show whether two lock files describe the same
    content independent of TOML formatting.
    """
    return f"sha256:{compute_digest(canonical_json_bytes(payload))}"

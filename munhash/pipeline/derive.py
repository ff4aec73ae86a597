"""Per-record salt and PBKDF2 digest derivation.

Both functions are pure: the salt depends only on the region code and the
digest only on its arguments, so anyone holding the published files can
recompute a digest without run state. Each call builds its own HMAC context,
which makes them safe to call from many threads at once.
"""

from __future__ import annotations

import hashlib

from munhash.common.errors import DerivationError

KDF_HASH_NAME = "sha256"


def derive_salt(region_code: str) -> bytes:
    """SHA-256 of the UTF-8 region code (32 bytes)."""
    return hashlib.sha256(region_code.encode("utf-8")).digest()


def derive_digest_hex(password: str, salt: bytes, iterations: int, output_bytes: int) -> str:
    """PBKDF2-HMAC-SHA256 of ``password`` rendered as upper-case hex."""
    if not isinstance(salt, (bytes, bytearray)):
        raise DerivationError(f"salt must be bytes, got {type(salt).__name__}")
    if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations < 1:
        raise DerivationError(f"iterations must be a positive integer, got {iterations!r}")
    if isinstance(output_bytes, bool) or not isinstance(output_bytes, int) or output_bytes < 1:
        raise DerivationError(f"output_bytes must be a positive integer, got {output_bytes!r}")

    try:
        key = hashlib.pbkdf2_hmac(
            KDF_HASH_NAME,
            password.encode("utf-8"),
            bytes(salt),
            iterations,
            dklen=output_bytes,
        )
    except (ValueError, OverflowError) as exc:
        raise DerivationError(f"PBKDF2 derivation failed: {exc}") from exc
    return key.hex().upper()

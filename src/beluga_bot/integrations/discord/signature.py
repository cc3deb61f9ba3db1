from __future__ import annotations

import logging
from typing import Optional

from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import VerifyKey

logger = logging.getLogger(__name__)


def verify_signature(
    body: bytes,
    signature_hex: Optional[str],
    timestamp: Optional[str],
    public_key_hex: str,
) -> bool:
    """Check an Ed25519 signature over ``timestamp + body``.

    Absent or empty headers fail without touching the key material. Decoding
    and verification errors are reported as ``False``.
    """
    if not signature_hex or not timestamp:
        return False
    try:
        verify_key = VerifyKey(bytes.fromhex(public_key_hex))
        verify_key.verify(timestamp.encode("utf-8") + body, bytes.fromhex(signature_hex))
    except BadSignatureError:
        return False
    except (ValueError, TypeError, CryptoError) as exc:
        logger.debug("Signature decode failed: %s", exc)
        return False
    return True

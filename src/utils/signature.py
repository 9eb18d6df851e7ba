"""HMAC signing and verification for proxied page URLs.

A link is authorized by ``sig`` (hex HMAC-SHA256) over ``"{path}:{t}"``
where ``t`` is the unix timestamp the link was minted at. Links are
accepted within ``max_age_seconds`` of ``t`` in either direction so that
clock skew between the signer and the proxy is tolerated.
"""

import binascii
import hashlib
import hmac
import time
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, urlencode

import structlog

logger = structlog.get_logger()

DEFAULT_MAX_AGE_SECONDS = 3600

# Characters a browser leaves unescaped in a URL path; "%" keeps existing
# escapes from being encoded twice
_PATH_SAFE = "/%!$&'()*+,;=:@"


@dataclass(frozen=True)
class SignedPath:
    path: str
    timestamp: int
    signature: str

    @property
    def query(self) -> str:
        return urlencode({"sig": self.signature, "t": self.timestamp})


def _message(path: str, timestamp: str) -> bytes:
    return f"{path}:{timestamp}".encode("utf-8")


def compute_signature(path: str, timestamp: int | str, secret: str) -> str:
    """Hex HMAC-SHA256 of ``"{path}:{timestamp}"`` under ``secret``"""
    return hmac.new(
        secret.encode("utf-8"), _message(path, str(timestamp)), hashlib.sha256
    ).hexdigest()


def encode_path(path: str) -> str:
    """Percent-encode ``path`` the way it appears on the wire.

    ``/one piece/1/2.webp`` becomes ``/one%20piece/1/2.webp``; an already
    encoded path is returned unchanged.
    """
    return quote(path, safe=_PATH_SAFE)


def sign_path(
    path: str, secret: str, timestamp: Optional[int] = None
) -> SignedPath:
    """Mint a signature for ``path`` valid around ``timestamp`` (default: now).

    The signature covers the percent-encoded form of ``path``, which is what
    the proxy sees in the request line.
    """
    ts = int(time.time()) if timestamp is None else int(timestamp)
    encoded = encode_path(path)
    return SignedPath(
        path=encoded, timestamp=ts, signature=compute_signature(encoded, ts, secret)
    )


def build_signed_url(
    base_url: str, path: str, secret: str, timestamp: Optional[int] = None
) -> str:
    """Full proxy URL for ``path`` with ``sig`` and ``t`` query parameters"""
    signed = sign_path(path, secret, timestamp)
    return f"{base_url.rstrip('/')}{signed.path}?{signed.query}"


def verify_signature(
    path: str,
    timestamp: Optional[str],
    signature_hex: Optional[str],
    secret: str,
    now: Optional[float] = None,
    max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS,
) -> bool:
    """Check that ``signature_hex`` authorizes ``path`` at ``timestamp``.

    Never raises: a missing signature or timestamp, a timestamp outside the
    window, a signature that is not hex, or an HMAC mismatch all return
    False. Callers must not distinguish between these cases.

    Args:
        path: Request path exactly as signed (e.g. "/one-piece/12/3.webp")
        timestamp: Value of the ``t`` query parameter (unix seconds)
        signature_hex: Value of the ``sig`` query parameter
        secret: Shared signing secret
        now: Current unix time, for tests
        max_age_seconds: Accepted distance between now and timestamp

    Returns:
        True only if the signature is valid and fresh
    """
    try:
        if not signature_hex or not timestamp:
            return False

        ts = int(timestamp)
        current = int(time.time() if now is None else now)
        if abs(current - ts) > max_age_seconds:
            return False

        provided = binascii.unhexlify(signature_hex)
        expected = hmac.new(
            secret.encode("utf-8"), _message(path, timestamp), hashlib.sha256
        ).digest()

        return hmac.compare_digest(provided, expected)

    except (ValueError, TypeError, binascii.Error) as e:
        logger.debug("signature_rejected", path=path, error_type=type(e).__name__)
        return False

from __future__ import annotations

import base64
import json
import time
from typing import Callable, Optional

import httpx
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from ...core.config import ServiceAccountCredentials
from .errors import GoogleOAuthError

GOOGLE_TOKEN_URL = "https://accounts.google.com/o/oauth2/token"
SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
TOKEN_LIFETIME_SECONDS = 3600


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _load_rsa_key(pem: str) -> rsa.RSAPrivateKey:
    try:
        key = serialization.load_pem_private_key(pem.encode("utf-8"), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise GoogleOAuthError("OAuth failed: unreadable service account private key") from exc
    if not isinstance(key, rsa.RSAPrivateKey):
        raise GoogleOAuthError("OAuth failed: service account key is not an RSA key")
    return key


def build_assertion(
    credentials: ServiceAccountCredentials,
    *,
    issued_at: int,
    scope: str = SHEETS_SCOPE,
    audience: str = GOOGLE_TOKEN_URL,
) -> str:
    """Sign an RS256 JWT assertion for the service account."""
    header = {"alg": "RS256", "typ": "JWT", "kid": credentials.private_key_id}
    claims = {
        "iss": credentials.client_email,
        "scope": scope,
        "aud": audience,
        "iat": issued_at,
        "exp": issued_at + TOKEN_LIFETIME_SECONDS,
    }
    signing_input = ".".join(
        _b64url(json.dumps(part, separators=(",", ":")).encode("utf-8"))
        for part in (header, claims)
    )
    key = _load_rsa_key(credentials.private_key)
    signature = key.sign(signing_input.encode("ascii"), padding.PKCS1v15(), hashes.SHA256())
    return f"{signing_input}.{_b64url(signature)}"


class GoogleOAuthClient:
    def __init__(
        self,
        credentials: ServiceAccountCredentials,
        *,
        http_client: httpx.AsyncClient,
        token_url: str = GOOGLE_TOKEN_URL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._credentials = credentials
        self._http = http_client
        self._token_url = token_url
        self._clock = clock

    async def get_access_token(self, *, scope: Optional[str] = None) -> str:
        assertion = build_assertion(
            self._credentials,
            issued_at=int(self._clock()),
            scope=scope or SHEETS_SCOPE,
            audience=self._token_url,
        )
        try:
            response = await self._http.post(
                self._token_url,
                data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
            )
        except httpx.HTTPError as exc:
            raise GoogleOAuthError(f"OAuth failed: token request error: {exc}") from exc
        if not response.is_success:
            raise GoogleOAuthError(
                f"OAuth failed: {response.status_code} {response.reason_phrase}"
            )
        try:
            token = response.json().get("access_token")
        except (ValueError, AttributeError) as exc:
            raise GoogleOAuthError("OAuth failed: malformed token response") from exc
        if not isinstance(token, str) or not token:
            raise GoogleOAuthError("OAuth failed: token response missing access_token")
        return token

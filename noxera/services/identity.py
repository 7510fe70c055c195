### Description ###
# Noxera Plus - Church Operations Platform API
# - Identity Verifiers -
# Author: Bailey Dixon
# Date: 01/03/2026
# Python: 3.11
####################

"""
Identity Verifiers

Turn a bearer credential into verified identity claims. The identity
provider itself is external; two adapters are provided:

- HttpIdentityVerifier: POSTs the token to an introspection endpoint
- JwtIdentityVerifier: checks HS256 tokens signed with a shared secret
  (local development and tests)

Both fail closed: any transport error, timeout or malformed answer is
reported as UnauthenticatedError.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Protocol

import httpx
import jwt

from noxera.errors import UnauthenticatedError
from noxera.utils import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityClaims:
    """Verified claims about the bearer of a credential"""

    subject_id: str
    email: str | None
    provider: str | None = None


class IdentityVerifier(Protocol):
    async def verify(self, token: str) -> IdentityClaims: ...


class HttpIdentityVerifier:
    """
    Identity verifier backed by a token introspection endpoint.

    The endpoint receives {"token": "..."} and must answer 200 with
    {"uid": ..., "email": ..., "provider": ...}. Anything else is treated
    as an invalid credential.
    """

    def __init__(self, url: str, timeout: float = 5.0):
        """
        Initialize the verifier.

        Args:
            url: Introspection endpoint (e.g., "https://id.noxera.plus/verify")
            timeout: Request timeout in seconds
        """
        self.url = url
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    async def close(self) -> None:
        """Close the HTTP client"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def verify(self, token: str) -> IdentityClaims:
        try:
            client = await self._get_client()
            response = await client.post(self.url, json={"token": token})
        except httpx.TimeoutException as e:
            raise UnauthenticatedError(
                f"Identity verification timed out after {self.timeout}s"
            ) from e
        except httpx.HTTPError as e:
            raise UnauthenticatedError(f"Identity provider unreachable: {e}") from e

        if response.status_code != 200:
            raise UnauthenticatedError(
                f"Identity provider rejected token ({response.status_code})"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UnauthenticatedError("Identity provider returned invalid JSON") from e

        subject_id = data.get("uid") if isinstance(data, dict) else None
        if not subject_id:
            raise UnauthenticatedError("Identity provider response is missing uid")

        return IdentityClaims(
            subject_id=str(subject_id),
            email=data.get("email"),
            provider=data.get("provider"),
        )


class JwtIdentityVerifier:
    """Identity verifier for HS256 tokens signed with a shared secret"""

    def __init__(self, secret: str):
        self.secret = secret

    async def verify(self, token: str) -> IdentityClaims:
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=["HS256"],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise UnauthenticatedError("Identity token expired") from e
        except jwt.InvalidTokenError as e:
            raise UnauthenticatedError(f"Invalid identity token: {e}") from e

        if payload.get("type") == "impersonation":
            raise UnauthenticatedError("Impersonation tokens are not identity tokens")

        return IdentityClaims(
            subject_id=str(payload["sub"]),
            email=payload.get("email"),
            provider=payload.get("provider", "password"),
        )


def issue_identity_token(
    secret: str,
    subject_id: str,
    email: str | None,
    provider: str = "password",
    expires_minutes: int = 60,
) -> str:
    """
    Mint a token accepted by JwtIdentityVerifier.

    Development helper; production tokens come from the identity provider.
    """
    now = utcnow()
    payload = {
        "sub": subject_id,
        "email": email,
        "provider": provider,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, secret, algorithm="HS256")

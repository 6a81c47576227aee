"""Проверка ID-токенов провайдера социального входа.

Ключ подписи берется либо из статического PEM, либо из набора сертификатов
провайдера (``kid -> PEM``). Набор кешируется на ``max-age`` из ответа и
перечитывается, если в токене встретился незнакомый ``kid``.
"""
import logging
import re
import time
from typing import Dict, List, Optional

import httpx
from jose import JWTError, jwt

from sliceurl.config import settings

logger = logging.getLogger(__name__)

MAX_AGE_PATTERN = re.compile(r"max-age=(\d+)")
DEFAULT_CERTS_TTL = 3600


class IdentityVerificationError(Exception):
    pass


class IdentityVerifier:
    """Интерфейс: проверяет токен и возвращает его claims (name, email, firebase.sign_in_provider)"""

    def verify(self, token: str) -> dict:
        raise NotImplementedError


class JoseIdentityVerifier(IdentityVerifier):
    def __init__(
        self,
        public_key: str = settings.SOCIAL_AUTH_PUBLIC_KEY,
        certs_url: str = settings.SOCIAL_AUTH_CERTS_URL,
        algorithms: Optional[List[str]] = None,
        audience: str = settings.SOCIAL_AUTH_AUDIENCE,
        issuer: str = settings.SOCIAL_AUTH_ISSUER,
        timeout: float = 5.0,
    ):
        self.public_key = public_key
        self.certs_url = certs_url
        self.algorithms = algorithms or settings.SOCIAL_AUTH_ALGORITHMS
        self.audience = audience or None
        self.issuer = issuer or None
        self.timeout = timeout
        self._certs: Dict[str, str] = {}
        self._certs_expire_at = 0.0

    def verify(self, token: str) -> dict:
        key = self._signing_key(token)

        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_aud": self.audience is not None}
            )
        except JWTError as e:
            raise IdentityVerificationError(str(e)) from e

        if not claims.get("email"):
            raise IdentityVerificationError("Token has no email claim")

        return claims

    def _signing_key(self, token: str) -> str:
        if self.public_key:
            return self.public_key

        if not self.certs_url:
            logger.error("Social login is not configured: no public key and no certificates URL")
            raise IdentityVerificationError("Social login is not configured")

        try:
            kid = jwt.get_unverified_header(token).get("kid")
        except JWTError as e:
            raise IdentityVerificationError(str(e)) from e

        if not kid:
            raise IdentityVerificationError("Token has no key id")

        certs = self._get_certs()
        if kid not in certs:
            # Провайдер мог сменить ключи раньше истечения кеша
            certs = self._get_certs(force=True)
        if kid not in certs:
            raise IdentityVerificationError(f"Unknown key id: {kid}")

        return certs[kid]

    def _get_certs(self, force: bool = False) -> Dict[str, str]:
        if self._certs and not force and time.time() < self._certs_expire_at:
            return self._certs

        try:
            response = httpx.get(self.certs_url, timeout=self.timeout)
            response.raise_for_status()
            certs = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Failed to fetch signing certificates from %s: %s", self.certs_url, e)
            raise IdentityVerificationError("Signing certificates are unavailable") from e

        match = MAX_AGE_PATTERN.search(response.headers.get("cache-control", ""))
        ttl = int(match.group(1)) if match else DEFAULT_CERTS_TTL

        self._certs = certs
        self._certs_expire_at = time.time() + ttl
        logger.info("Loaded %d signing certificates (ttl=%ds)", len(certs), ttl)
        return self._certs


def get_sign_in_provider(claims: dict) -> str:
    """'google.com' -> 'google', 'github.com' -> 'github'"""
    provider = (claims.get("firebase") or {}).get("sign_in_provider", "")
    return provider.split(".")[0]

import logging
import threading
import time
from dataclasses import dataclass
from functools import lru_cache

import requests
from django.conf import settings

from flights.providers.base import AuthenticationError

logger = logging.getLogger(__name__)

TOKEN_PATH = "/v1/security/oauth2/token"
DEFAULT_REFRESH_MARGIN_SECONDS = 10


@dataclass(frozen=True)
class Credential:
    token: str
    expires_at: float


class TokenCache:
    """Process-wide bearer token for the flights provider.

    The token is exchanged with client credentials on first use and again
    whenever it is missing or within ``margin_seconds`` of expiry. A failed
    exchange raises ``AuthenticationError`` and keeps the previous credential
    as it was; an expired credential is never handed out.
    """

    def __init__(
        self,
        token_url: str,
        client_id: str | None,
        client_secret: str | None,
        *,
        clock=time.time,
        margin_seconds: float = DEFAULT_REFRESH_MARGIN_SECONDS,
        timeout: float = 15,
    ):
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.clock = clock
        self.margin_seconds = margin_seconds
        self.timeout = timeout
        self._credential: Credential | None = None
        self._lock = threading.Lock()

    @property
    def credential(self) -> Credential | None:
        return self._credential

    def _is_valid(self, credential: Credential | None) -> bool:
        if credential is None or not credential.token:
            return False
        return self.clock() < credential.expires_at - self.margin_seconds

    def get_token(self) -> str:
        credential = self._credential
        if self._is_valid(credential):
            return credential.token

        # Only one exchange in flight; late arrivals reuse its result.
        with self._lock:
            credential = self._credential
            if self._is_valid(credential):
                return credential.token
            self._credential = self._exchange()
            return self._credential.token

    def invalidate(self) -> None:
        with self._lock:
            self._credential = None

    def _exchange(self) -> Credential:
        if not self.client_id or not self.client_secret:
            raise AuthenticationError("Flights provider client credentials are not configured.")

        try:
            response = requests.post(
                self.token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.exception("Token exchange request failed.")
            raise AuthenticationError(details={"error": str(exc)}) from exc

        if response.status_code >= 400:
            logger.warning(
                "Token exchange rejected (%s): %s",
                response.status_code,
                response.text,
                extra={"status_code": response.status_code, "details": response.text},
            )
            raise AuthenticationError(details={"upstreamStatus": response.status_code})

        try:
            payload = response.json()
            token = payload["access_token"]
            expires_in = float(payload.get("expires_in", 0))
        except (ValueError, KeyError, TypeError) as exc:
            raise AuthenticationError("Token exchange response was not understood.") from exc

        logger.info("Obtained provider token, expires in %ss", int(expires_in))
        return Credential(token=token, expires_at=self.clock() + expires_in)


@lru_cache()
def get_token_cache() -> TokenCache:
    """Return the process-wide token cache configured from settings."""

    base_url = getattr(settings, "AMADEUS_BASE_URL", "https://test.api.amadeus.com").rstrip("/")
    return TokenCache(
        base_url + TOKEN_PATH,
        getattr(settings, "AMADEUS_CLIENT_ID", None),
        getattr(settings, "AMADEUS_CLIENT_SECRET", None),
        margin_seconds=getattr(settings, "TOKEN_REFRESH_MARGIN_SECONDS", DEFAULT_REFRESH_MARGIN_SECONDS),
        timeout=getattr(settings, "AMADEUS_TIMEOUT", 15),
    )

"""
JWKS fetch and cache with background refresh. No per-request fetches once warm.

Background for newcomers:
    Azure Entra ID signs every access token with a private RSA key. Your API
    needs the matching **public** key to verify the signature. Entra publishes
    its current public keys at a well-known URL (the JWKS endpoint). This
    module fetches those keys once at startup and then keeps them fresh from a
    background thread, so request handling only ever reads memory.

    Azure periodically **rotates** signing keys. If a token arrives signed with
    a key we haven't seen yet (the ``kid`` in the token header doesn't match
    anything in our cache), we refresh once and look again. Those extra
    refreshes are rate-limited so a flood of garbage ``kid`` values cannot
    hammer the discovery endpoint.

    If a refresh fails we keep serving the keys we already have. Only the very
    first fetch is allowed to fail loudly, because without it we have nothing
    to verify against.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

import requests
from jwt import PyJWK
from jwt.exceptions import PyJWTError

from .errors import JWKSFetchError, KeyNotFoundError

logger = logging.getLogger(__name__)


class JWKSCache:
    """
    In-memory ``kid -> PyJWK`` map for one discovery URL.

    The map is replaced wholesale on every successful refresh. Readers grab
    the current map reference without locking; only refreshes serialize.

    The refresh thread stops when ``stop_event`` is set (the caller's
    shutdown signal) or when ``close()`` is called.
    """

    def __init__(
        self,
        jwks_uri: str,
        *,
        refresh_interval: float = 3600.0,
        refresh_unknown_kid_interval: float = 300.0,
        timeout: float = 10.0,
        stop_event: threading.Event | None = None,
        session: requests.Session | None = None,
        start: bool = True,
    ) -> None:
        self._uri = jwks_uri
        self._refresh_interval = refresh_interval
        self._unknown_kid_interval = refresh_unknown_kid_interval
        self._timeout = timeout
        self._stop = stop_event or threading.Event()
        self._owns_session = session is None
        self._session = session or requests.Session()
        self._lock = threading.Lock()
        self._keys: dict[str, PyJWK] = {}
        self._last_unknown_kid_refresh: float | None = None
        self._thread: threading.Thread | None = None

        # First fetch must succeed; raises JWKSFetchError otherwise.
        try:
            self.refresh()
        except JWKSFetchError:
            self._close_session()
            raise

        if start:
            self._thread = threading.Thread(
                target=self._run,
                name=f"jwks-refresh[{jwks_uri}]",
                daemon=True,
            )
            self._thread.start()

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def kids(self) -> list[str]:
        return list(self._keys)

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def _fetch(self) -> dict[str, Any]:
        try:
            resp = self._session.get(self._uri, timeout=self._timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise JWKSFetchError(f"failed to fetch JWKS from {self._uri}: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get("keys"), list):
            raise JWKSFetchError(f"JWKS from {self._uri} has no 'keys' list")
        return data

    def _parse(self, data: dict[str, Any]) -> dict[str, PyJWK]:
        keys: dict[str, PyJWK] = {}
        for key_dict in data["keys"]:
            kid = key_dict.get("kid") if isinstance(key_dict, dict) else None
            if not isinstance(kid, str) or not kid:
                continue
            try:
                keys[kid] = PyJWK.from_dict(key_dict)
            except (PyJWTError, ValueError) as e:
                logger.warning("Skipping unusable JWK kid=%s uri=%s: %s", kid, self._uri, e)
        return keys

    def refresh(self) -> None:
        """Fetch the key set now and replace the cached map."""
        with self._lock:
            self._reload()

    def _reload(self) -> None:
        keys = self._parse(self._fetch())
        self._keys = keys
        logger.debug("JWKS cache refreshed uri=%s keys=%d", self._uri, len(keys))

    def _run(self) -> None:
        while not self._stop.wait(self._refresh_interval):
            try:
                self.refresh()
            except JWKSFetchError as e:
                logger.warning("JWKS background refresh failed; serving cached keys: %s", e)
        self._close_session()
        logger.debug("JWKS refresh stopped uri=%s", self._uri)

    def _refresh_for_unknown_kid(self) -> bool:
        """Refresh unless one already happened within the rate-limit window."""
        with self._lock:
            now = time.monotonic()
            last = self._last_unknown_kid_refresh
            if last is not None and (now - last) < self._unknown_kid_interval:
                return False
            self._last_unknown_kid_refresh = now
            self._reload()
        return True

    def get_signing_key(self, kid: str) -> PyJWK:
        """
        Return the JWK for the given key id.

        If ``kid`` is not cached, refresh once (rate-limited) to catch a key
        rotation. Raises ``KeyNotFoundError`` if it is still missing, or
        ``JWKSFetchError`` if that refresh failed.
        """
        key = self._keys.get(kid)
        if key is not None:
            return key

        if self._stop.is_set():
            raise KeyNotFoundError(kid, self._uri)

        logger.info("kid not in cached JWKS; refreshing for possible key rotation uri=%s", self._uri)
        self._refresh_for_unknown_kid()
        key = self._keys.get(kid)
        if key is None:
            raise KeyNotFoundError(kid, self._uri)
        return key

    def close(self) -> None:
        """Stop the refresh thread and release the HTTP session."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self._timeout + 1)
        if thread is None:
            self._close_session()

    def _close_session(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> JWKSCache:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

"""Key resolution across the v2.0 and v1 Entra key sets."""

from __future__ import annotations

import logging
from typing import Protocol

from jwt import PyJWK

logger = logging.getLogger(__name__)


class KeySet(Protocol):
    def get_signing_key(self, kid: str) -> PyJWK: ...


class DualKeySetResolver:
    """
    Resolve a ``kid`` against the v2.0 key set, falling back to v1.

    Entra signs tokens with keys from either set depending on which endpoint
    issued them, and nothing in the token says which one in advance. If both
    lookups fail, the v1 error is the one raised.
    """

    def __init__(self, primary: KeySet, fallback: KeySet) -> None:
        self._primary = primary
        self._fallback = fallback

    def resolve(self, kid: str) -> PyJWK:
        try:
            return self._primary.get_signing_key(kid)
        except Exception as e:
            logger.debug("kid=%s not resolved from v2.0 key set (%s); trying v1", kid, e)
        return self._fallback.get_signing_key(kid)

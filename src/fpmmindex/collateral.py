"""Collateral token metadata - decimals from config or an Ethereum JSON-RPC node, cached forever."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

import httpx
import structlog

from fpmmindex.chain import normalize_address
from fpmmindex.errors import ReferenceNotFound
from fpmmindex.models.market import CollateralToken

if TYPE_CHECKING:
    from fpmmindex.config.settings import Settings

log = structlog.get_logger(__name__)

# keccak256("decimals()")[:4]
DECIMALS_SELECTOR = "0x313ce567"

DecimalsResolver = Callable[[str], int]


class RpcDecimalsResolver:
    """Calls ERC20 decimals() via eth_call."""

    def __init__(self, rpc_url: str, timeout: float = 10.0) -> None:
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._request_id = 0

    def __call__(self, token: str) -> int:
        self._request_id += 1
        body = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": "eth_call",
            "params": [{"to": token, "data": DECIMALS_SELECTOR}, "latest"],
        }
        resp = httpx.post(self.rpc_url, json=body, timeout=self.timeout)
        resp.raise_for_status()
        data = resp.json()
        if "error" in data:
            raise ValueError(f"eth_call decimals() failed for {token}: {data['error']}")
        result = data.get("result") or "0x"
        if result == "0x":
            raise ValueError(f"token {token} returned no data for decimals()")
        return int(result, 16)


class CollateralRegistry:
    """Collateral decimals from the config table, then the resolver, then a default.

    Only resolved decimals are cached; a default stands in for one lookup and the
    token is retried on the next one.
    """

    def __init__(
        self,
        known_decimals: dict[str, int] | None = None,
        resolver: DecimalsResolver | None = None,
        default_decimals: int | None = None,
    ) -> None:
        self._known = {normalize_address(k): int(v) for k, v in (known_decimals or {}).items()}
        self._resolver = resolver
        self._default = default_decimals
        self._cache: dict[str, CollateralToken] = {}

    def resolve(self, token: str) -> CollateralToken | None:
        """Decimals from the config table or the resolver, or None if neither knows the token."""
        token = normalize_address(token)
        cached = self._cache.get(token)
        if cached is not None:
            return cached
        decimals = self._known.get(token)
        if decimals is None and self._resolver is not None:
            try:
                decimals = self._resolver(token)
            except (httpx.HTTPError, ValueError) as e:
                log.warning("collateral_decimals_lookup_failed", token=token, error=str(e))
        if decimals is None:
            return None
        details = CollateralToken(id=token, decimals=decimals)
        self._cache[token] = details
        log.debug("collateral_resolved", token=token, decimals=decimals)
        return details

    def details(self, token: str) -> CollateralToken:
        details = self.resolve(token)
        if details is not None:
            return details
        return self.fallback(token)

    def fallback(self, token: str) -> CollateralToken:
        """Configured default decimals for a token nothing could resolve. Never cached."""
        token = normalize_address(token)
        if self._default is None:
            raise ReferenceNotFound("collateral_token", token)
        log.warning("collateral_default_decimals", token=token, decimals=self._default)
        return CollateralToken(id=token, decimals=self._default)

    def scale_of(self, token: str) -> int:
        return self.details(token).scale


def registry_from_settings(settings: Settings) -> CollateralRegistry:
    resolver = None
    if settings.rpc_url:
        resolver = RpcDecimalsResolver(settings.rpc_url, timeout=settings.rpc_timeout_sec)
    return CollateralRegistry(
        known_decimals=settings.collateral_decimals,
        resolver=resolver,
        default_decimals=settings.default_collateral_decimals,
    )

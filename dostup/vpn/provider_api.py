"""Client for the core's local control-plane API."""

from typing import Dict, List, Optional, Tuple
from urllib.parse import quote

import requests
from pydantic import BaseModel, ValidationError

from .exceptions import TransportFailure
from .models import ProviderKind
from ..logging_utility import logger

DEFAULT_BASE_URL = "http://127.0.0.1:9090"


class ProvidersResponse(BaseModel):
    providers: Dict[str, dict] = {}


class DelaySample(BaseModel):
    delay: Optional[int] = None


class ProxyEntry(BaseModel):
    history: List[DelaySample] = []


class ProviderDetail(BaseModel):
    proxies: List[ProxyEntry] = []


class ProviderAPIClient:
    """
    Sequential client for provider listing, refresh and health checks.

    Every call blocks until the control plane answers, so run it off the
    event loop.
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL,
                 session: Optional[requests.Session] = None,
                 list_timeout: float = 10,
                 refresh_timeout: float = 15,
                 healthcheck_timeout: float = 30,
                 detail_timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.list_timeout = list_timeout
        self.refresh_timeout = refresh_timeout
        self.healthcheck_timeout = healthcheck_timeout
        self.detail_timeout = detail_timeout

    def _url(self, *parts: str) -> str:
        return "/".join([self.base_url] + [quote(part, safe="") for part in parts])

    def _request(self, method: str, url: str, timeout: float) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=timeout)
        except requests.RequestException as e:
            raise TransportFailure(f"{method} {url} failed: {e}")

    def _get_json(self, url: str, timeout: float) -> dict:
        response = self._request("GET", url, timeout)
        if not response.ok:
            raise TransportFailure(f"GET {url} returned {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise TransportFailure(f"GET {url} returned invalid JSON: {e}")

    def list_providers(self, kind: ProviderKind) -> Tuple[List[str], bool]:
        """
        List provider names of one kind.

        Returns:
            Tuple of (names, ok); names is empty when ok is False
        """
        url = self._url("providers", kind.value)
        try:
            payload = ProvidersResponse.model_validate(self._get_json(url, self.list_timeout))
        except (TransportFailure, ValidationError) as e:
            logger.error(f"Could not list {kind.value} providers: {e}")
            return [], False
        return sorted(payload.providers), True

    def refresh_provider(self, kind: ProviderKind, name: str) -> bool:
        url = self._url("providers", kind.value, name)
        try:
            response = self._request("PUT", url, self.refresh_timeout)
        except TransportFailure as e:
            logger.error(f"Refresh of {kind.value}/{name} failed: {e}")
            return False
        ok = 200 <= response.status_code <= 204
        if not ok:
            logger.error(f"Refresh of {kind.value}/{name} returned {response.status_code}")
        return ok

    def run_healthcheck(self, name: str) -> None:
        """Trigger delay probing for a proxy provider. Raises TransportFailure."""
        self._request("GET", self._url("providers", "proxies", name, "healthcheck"),
                      self.healthcheck_timeout)

    def get_provider_detail(self, name: str) -> List[List[Optional[int]]]:
        """
        Fetch the delay history of every proxy in a provider.

        Returns:
            One list of delay samples per proxy, oldest first

        Raises:
            TransportFailure: request or payload failed
        """
        url = self._url("providers", "proxies", name)
        try:
            detail = ProviderDetail.model_validate(self._get_json(url, self.detail_timeout))
        except ValidationError as e:
            raise TransportFailure(f"Unexpected provider detail for {name}: {e}")
        return [[sample.delay for sample in proxy.history] for proxy in detail.proxies]

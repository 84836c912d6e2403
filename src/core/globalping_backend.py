import logging
from typing import List, Optional

import httpx

from abstractions.probe_backend import ProbeBackend
from core.errors import ProbeError
from core.profiler import Profiler

logger = logging.getLogger(__name__)


class GlobalpingBackend(ProbeBackend):
    """
    Probe backend speaking the Globalping measurements API over HTTP.
    """

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        packets: int = 3,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.packets = packets
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        logger.info(f"GlobalpingBackend initialized for {self.base_url}")

    @Profiler.profile
    async def submit(self, target: str, locations: List[dict]) -> dict:
        payload = {
            "type": "ping",
            "target": target,
            "locations": locations,
            "measurementOptions": {"packets": self.packets},
        }
        logger.debug(f"Submitting ping measurement for {target} from {locations}")
        return await self._request("POST", "/measurements", json=payload)

    @Profiler.profile
    async def fetch(self, measurement_id: str) -> dict:
        return await self._request("GET", f"/measurements/{measurement_id}")

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        try:
            resp = await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise ProbeError(f"Timeout calling {method} {url}: {e}") from e
        except httpx.RequestError as e:
            raise ProbeError(f"Transport error calling {method} {url}: {e!r}") from e

        if resp.status_code >= 400:
            logger.warning(f"Probe backend returned {resp.status_code} for {method} {url}: {resp.text}")
            raise ProbeError(f"Probe backend returned {resp.status_code} for {method} {path}")
        try:
            data = resp.json()
        except ValueError as e:
            raise ProbeError(f"Probe backend sent a non-JSON body for {method} {path}") from e
        if not isinstance(data, dict):
            raise ProbeError(f"Probe backend sent an unexpected payload for {method} {path}")
        return data

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

from abc import ABC, abstractmethod
from typing import List


class ProbeBackend(ABC):
    """
    Abstract base class for the external measurement backend.

    The backend runs measurements asynchronously: ``submit`` starts one and
    may already carry results, ``fetch`` returns its current state.
    """

    @abstractmethod
    async def submit(self, target: str, locations: List[dict]) -> dict:
        """
        Start a ping measurement.

        Args:
            target (str): Hostname to ping.
            locations (List[dict]): Probe location selectors, e.g. ``[{"country": "US"}]``.

        Returns:
            dict: Raw payload with ``id``, ``status`` and optionally ``results``.

        Raises:
            ProbeError: On transport failure or an error response.
        """

    @abstractmethod
    async def fetch(self, measurement_id: str) -> dict:
        """
        Fetch the current state of a measurement.

        Args:
            measurement_id (str): Id returned by ``submit``.

        Returns:
            dict: Raw payload with ``status`` and optionally ``results``.

        Raises:
            ProbeError: On transport failure or an error response.
        """

    async def aclose(self) -> None:
        """
        Release any held connections.
        """

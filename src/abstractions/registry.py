from abc import ABC, abstractmethod
from typing import List

from contracts.endpoint import Endpoint


class Registry(ABC):
    """
    Abstract base class for endpoint topology registries.
    """

    @abstractmethod
    def list_endpoints(self) -> List[Endpoint]:
        """
        Return every configured endpoint in a stable order.

        Returns:
            List[Endpoint]: Endpoints in configuration order.
        """

    @abstractmethod
    def get_endpoint(self, endpoint_id: str) -> Endpoint:
        """
        Return the endpoint with the given id.

        Args:
            endpoint_id (str): Exact endpoint id.

        Returns:
            Endpoint: The matching endpoint.

        Raises:
            NotFound: If no endpoint has this id.
        """

    @abstractmethod
    def resolve_id(self, candidate: str) -> str:
        """
        Map a possibly legacy or loosely spelled id onto a configured id.

        Args:
            candidate (str): The id supplied by a caller.

        Returns:
            str: A configured endpoint id, or the candidate unchanged if nothing matches.
        """

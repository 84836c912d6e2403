import json
import logging
from typing import Iterable, List, Optional, Sequence

from abstractions.registry import Registry
from config.endpoints import DEFAULT_ENDPOINTS
from contracts.endpoint import Endpoint
from core.errors import NotFound

logger = logging.getLogger(__name__)


def resolve_endpoint_id(endpoints: Sequence[Endpoint], candidate: str) -> str:
    """
    Resolve a caller-supplied id against the endpoint table.

    Tie-break order: exact id, case-insensitive id, substring match against
    the normalized display name in either direction, then the candidate
    unchanged. The first endpoint in table order wins within each step.
    """
    for endpoint in endpoints:
        if endpoint.id == candidate:
            return endpoint.id

    lowered = candidate.lower()
    for endpoint in endpoints:
        if endpoint.id.lower() == lowered:
            return endpoint.id

    if not lowered:
        return candidate
    for endpoint in endpoints:
        name = endpoint.normalized_name
        if lowered in name or name in lowered:
            return endpoint.id

    return candidate


class EndpointRegistry(Registry):
    """
    Static in-memory registry of endpoints, loaded once at startup.
    """

    def __init__(self, endpoints: Iterable[Endpoint]):
        self._endpoints: List[Endpoint] = []
        self._by_id = {}
        for endpoint in endpoints:
            if endpoint.id in self._by_id:
                raise ValueError(f"Duplicate endpoint id: {endpoint.id}")
            self._endpoints.append(endpoint)
            self._by_id[endpoint.id] = endpoint
        logger.info(f"EndpointRegistry initialized with {len(self._endpoints)} endpoints")

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> "EndpointRegistry":
        return cls(Endpoint.model_validate(record) for record in records)

    @classmethod
    def from_file(cls, path: str) -> "EndpointRegistry":
        """
        Load endpoints from a JSON file holding a list of endpoint objects.
        """
        with open(path, "r", encoding="utf-8") as fh:
            records = json.load(fh)
        if not isinstance(records, list):
            raise ValueError(f"Endpoint file {path} must contain a JSON list")
        logger.info(f"Loading endpoints from {path}")
        return cls.from_records(records)

    @classmethod
    def default(cls, path: Optional[str] = None) -> "EndpointRegistry":
        if path:
            return cls.from_file(path)
        return cls.from_records(DEFAULT_ENDPOINTS)

    def list_endpoints(self) -> List[Endpoint]:
        return list(self._endpoints)

    def get_endpoint(self, endpoint_id: str) -> Endpoint:
        endpoint = self._by_id.get(endpoint_id)
        if endpoint is None:
            raise NotFound(endpoint_id)
        return endpoint

    def resolve_id(self, candidate: str) -> str:
        resolved = resolve_endpoint_id(self._endpoints, candidate)
        if resolved != candidate:
            logger.debug(f"Resolved endpoint id {candidate!r} -> {resolved!r}")
        return resolved

    def __len__(self):
        return len(self._endpoints)

from typing import Optional

from pydantic import BaseModel, ConfigDict


class Endpoint(BaseModel):
    """
    Data model representing a service endpoint whose latency is tracked.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    latitude: float
    longitude: float
    provider: str
    region: str = ""
    region_code: str = ""
    # Hostname pinged by the measurement backend; None means simulate only
    probe_target: Optional[str] = None
    # Country code of the probe that measures traffic *from* this endpoint
    probe_location: str = "US"

    @property
    def normalized_name(self) -> str:
        """
        Display name lowercased with whitespace runs replaced by hyphens.
        """
        return "-".join(self.name.lower().split())

    def __repr__(self):
        return f"Endpoint(id={self.id}, provider={self.provider}, region={self.region_code})"

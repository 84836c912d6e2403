from typing import Iterable, Optional, Tuple


class LatencyMeshError(Exception):
    """
    Base class for errors raised by the latency acquisition pipeline.
    """


class NotFound(LatencyMeshError, LookupError):
    """
    Raised when an endpoint id does not exist in the registry.
    """

    def __init__(self, endpoint_id: str):
        self.endpoint_id = endpoint_id
        super().__init__(f"Unknown endpoint id: {endpoint_id}")


class ProbeError(LatencyMeshError):
    """
    Raised when a probe fails at the transport or parse level.
    """


class ProbeTimeout(ProbeError):
    """
    Raised when polling a measurement exhausts its attempts without valid data.
    """

    def __init__(self, measurement_id: Optional[str], attempts: int):
        self.measurement_id = measurement_id
        self.attempts = attempts
        super().__init__(
            f"No valid latency for measurement {measurement_id} after {attempts} attempts"
        )


class PartialRoundFailure(LatencyMeshError):
    """
    Raised on request when a real-only round finished with some pairs dropped.
    """

    def __init__(self, dropped: Iterable[Tuple[str, str]], total: int):
        self.dropped = list(dropped)
        self.total = total
        super().__init__(
            f"{len(self.dropped)} of {total} pairs dropped from real-only round"
        )

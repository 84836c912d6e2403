import logging

from config.logging_config import setup_logging

# Set up logging at the start of the module
setup_logging()
logger = logging.getLogger(__name__)
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, Query, Response, WebSocket, WebSocketDisconnect
from fastapi.responses import ORJSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from contracts.endpoint import Endpoint
from contracts.latency import (
    AcquisitionMode,
    LatencySample,
    LatencyStats,
    RoundProgress,
    Snapshot,
)
from core.errors import NotFound
from core.service_factory import ServiceFactory

DEFAULT_WINDOW_MS = 3_600_000

service = ServiceFactory.create_service()


class ModeRequest(BaseModel):
    mode: AcquisitionMode


class ModeResponse(BaseModel):
    mode: AcquisitionMode


@asynccontextmanager
async def lifespan(app):
    await service.start()
    yield
    await service.stop()


app = FastAPI(lifespan=lifespan, default_response_class=ORJSONResponse)


@app.exception_handler(NotFound)
async def not_found_handler(request, exc: NotFound):
    return ORJSONResponse({"detail": str(exc)}, status_code=404)


@app.get("/endpoints", response_model=List[Endpoint])
async def list_endpoints():
    return service.list_endpoints()


@app.get("/endpoints/{endpoint_id}", response_model=Endpoint)
async def get_endpoint(endpoint_id: str):
    return service.get_endpoint(endpoint_id)


@app.get("/mode", response_model=ModeResponse)
async def get_mode():
    return ModeResponse(mode=service.get_mode())


@app.put("/mode", response_model=ModeResponse)
async def set_mode(data: ModeRequest):
    logger.info(f"Mode change requested: {data.mode.value}")
    return ModeResponse(mode=await service.set_mode(data.mode))


@app.get("/snapshot", response_model=Snapshot)
async def current_snapshot():
    return service.get_current_snapshot()


@app.post("/refresh", response_model=Snapshot)
async def refresh():
    return await service.refresh_now()


@app.get("/progress", response_model=RoundProgress)
async def progress():
    return service.progress()


@app.get("/history", response_model=List[LatencySample])
async def history(
    from_id: str = Query(..., alias="from"),
    to_id: str = Query(..., alias="to"),
    window_ms: int = Query(DEFAULT_WINDOW_MS, gt=0),
):
    return await service.query_history(from_id, to_id, window_ms)


@app.get("/stats", response_model=LatencyStats)
async def stats(
    from_id: str = Query(..., alias="from"),
    to_id: str = Query(..., alias="to"),
    window_ms: int = Query(DEFAULT_WINDOW_MS, gt=0),
):
    return await service.get_stats(from_id, to_id, window_ms)


@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.websocket("/ws/latency")
async def latency_stream(websocket: WebSocket):
    await websocket.accept()

    async def push(snapshot: Snapshot):
        await websocket.send_json(snapshot.model_dump(mode="json", by_alias=True))

    await service.subscribe(push)
    try:
        while True:
            # clients may send anything; the stream only pushes snapshots
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Latency stream client disconnected")
    finally:
        await service.unsubscribe(push)


logger.info("Latency server module loaded and logging is configured.")


if __name__ == "__main__":
    import uvicorn

    from config.config import Config

    uvicorn.run("server:app", host=Config.SERVER_HOST, port=Config.SERVER_PORT)

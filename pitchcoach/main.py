"""FastAPI backend for the pitch coach overlay."""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from pitchcoach.analyzers import create_analyzer
from pitchcoach.audio_capture import MicrophoneSource, list_audio_devices
from pitchcoach.config import Config
from pitchcoach.pipeline import AnalysisPipeline

logger = logging.getLogger(__name__)

# Initialize analyzer based on configuration
try:
    analyzer = create_analyzer(Config.ANALYZER_TYPE)
    logger.info(f"[API] Analyzer initialized: {Config.ANALYZER_TYPE}")
except ValueError as e:
    logger.error(f"[API] {e}; falling back to Gemini analyzer")
    analyzer = create_analyzer("gemini")

for problem in Config.validate():
    logger.warning(f"[API] Missing configuration: {problem}")

pipeline = AnalysisPipeline(analyzer)

STREAM_POLL_SECONDS = 0.1
HEARTBEAT_SECONDS = 1.0


def create_audio_source(device: Optional[str] = None) -> MicrophoneSource:
    return MicrophoneSource(
        device=device if device is not None else Config.AUDIO_DEVICE,
        sample_rate=pipeline.segmenter.sample_rate,
        blocksize=Config.AUDIO_BLOCKSIZE,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if pipeline.active:
        await pipeline.stop()


app = FastAPI(title="Pitch Coach", lifespan=lifespan)

# CORS for the local overlay UI
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request models
class StartRequest(BaseModel):
    mode: Optional[str] = None
    custom_instructions: Optional[str] = None
    device: Optional[str] = None


class SettingsRequest(BaseModel):
    mode: str
    custom_instructions: str = ""


@app.get("/health")
async def health():
    """Report analyzer selection and missing configuration."""
    return {
        "analyzer": analyzer.name,
        "missing": Config.validate(),
        "active": pipeline.active,
    }


@app.get("/audio/devices")
async def audio_devices():
    """List input devices for selection."""
    try:
        return list_audio_devices()
    except OSError as e:
        return {"ok": False, "error": repr(e), "devices": []}


@app.post("/session/start")
async def session_start(request: Optional[StartRequest] = None):
    """Start capturing and analyzing."""
    request = request or StartRequest()
    if request.mode or request.custom_instructions is not None:
        # Omitted instructions keep whatever is configured
        custom = request.custom_instructions
        if custom is None:
            custom = analyzer.custom_instructions
        pipeline.update_settings(request.mode or analyzer.mode, custom)

    source = create_audio_source(request.device)
    if not await pipeline.start(source):
        return {"error": pipeline.state.error}
    return {"status": "started", "session": pipeline.session_id}


@app.post("/session/stop")
async def session_stop():
    """Stop the session; late results are discarded."""
    await pipeline.stop()
    return {"status": "stopped"}


@app.post("/session/settings")
async def session_settings(request: SettingsRequest):
    """Change coaching mode or custom instructions mid-session."""
    pipeline.update_settings(request.mode, request.custom_instructions)
    return {"mode": analyzer.mode, "custom_instructions": analyzer.custom_instructions}


@app.get("/session/state")
async def session_state():
    """Current session snapshot."""
    return pipeline.snapshot()


@app.get("/session/stream")
async def session_stream():
    """Stream session snapshots via Server-Sent Events whenever they change."""

    async def event_generator():
        last_version = -1
        idle = 0.0
        while True:
            version = pipeline.state.version
            if version != last_version:
                last_version = version
                idle = 0.0
                yield f"data: {json.dumps(pipeline.snapshot())}\n\n"
            elif idle >= HEARTBEAT_SECONDS:
                idle = 0.0
                # Keep connection alive
                yield ": heartbeat\n\n"

            await asyncio.sleep(STREAM_POLL_SECONDS)
            idle += STREAM_POLL_SECONDS

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable buffering for nginx
        }
    )

from __future__ import annotations

import asyncio
import os
import uuid
from collections import OrderedDict
from typing import List, Optional, Set

from fastapi import FastAPI, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from rental_safety.config import AssessorConfig
from rental_safety.filters import DetectorEngine, RegionTable
from rental_safety.models import AnalysisResult
from rental_safety.services import AnalysisSession, DisabledAssessor, get_assessor

from .events import hub


app = FastAPI(title="Rental Safety Checker")
config = AssessorConfig()


def _engine(cfg: AssessorConfig) -> DetectorEngine:
    if cfg.regions_file:
        return DetectorEngine(RegionTable.from_file(cfg.regions_file))
    return DetectorEngine()


# Least recently used sessions are evicted past this many ids.
MAX_SESSIONS = int(os.environ.get("RSC_MAX_SESSIONS", "256"))

engine = _engine(config)
assessor = get_assessor(config)
# One session per analysis id; a page re-submitted under the same id
# supersedes its pending assessment.
sessions: "OrderedDict[str, AnalysisSession]" = OrderedDict()
_background: Set["asyncio.Task[None]"] = set()


class AnalyzeRequest(BaseModel):
    text: str
    headings: List[str] = Field(default_factory=list)
    id: Optional[str] = None


class AnalyzeResponse(BaseModel):
    id: str
    result: AnalysisResult
    pending: bool


async def _publish_merged(analysis_id: str, task: "asyncio.Task[Optional[AnalysisResult]]") -> None:
    merged = await task
    if merged is None:
        return
    hub.publish("merged", analysis_id, merged)


def _session(analysis_id: str) -> AnalysisSession:
    session = sessions.get(analysis_id)
    if session is None:
        session = AnalysisSession(assessor, engine)
        sessions[analysis_id] = session
    sessions.move_to_end(analysis_id)
    while len(sessions) > MAX_SESSIONS:
        sessions.popitem(last=False)
    return session


@app.get("/health")
def health() -> dict:
    return {"ok": True, "ai_enabled": config.ai_enabled}


@app.post("/analyze", response_model=AnalyzeResponse)
async def analyze(req: AnalyzeRequest) -> AnalyzeResponse:
    analysis_id = req.id or uuid.uuid4().hex[:8]
    session = _session(analysis_id)
    pending = session.start(req.text, req.headings)
    hub.publish("base", analysis_id, pending.base)
    task = asyncio.get_running_loop().create_task(_publish_merged(analysis_id, pending.merged))
    _background.add(task)
    task.add_done_callback(_background.discard)
    return AnalyzeResponse(id=analysis_id, result=pending.base, pending=not isinstance(assessor, DisabledAssessor))


@app.get("/analyze/{analysis_id}", response_model=AnalysisResult)
def latest(analysis_id: str) -> AnalysisResult:
    session = sessions.get(analysis_id)
    if session is None or session.current is None:
        raise HTTPException(status_code=404, detail="unknown analysis id")
    return session.current


@app.get("/events")
async def sse_events() -> StreamingResponse:
    q = hub.subscribe()

    async def event_stream():
        try:
            while True:
                payload = await q.get()
                yield payload
        except asyncio.CancelledError:
            # Client disconnected
            pass
        finally:
            hub.unsubscribe(q)

    headers = {"Cache-Control": "no-cache", "Connection": "keep-alive"}
    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=headers)

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class DetectionModel(BaseModel):
    id: str
    label: str
    score: float
    bbox: List[float] = Field(..., description="Normalized [x, y, width, height]")
    distance: Optional[float] = Field(None, description="Estimated distance in meters")
    position: Optional[str] = Field(None, description="left|center|right")


class DetectionsResponse(BaseModel):
    timestamp: int
    detections: List[DetectionModel]
    updated_at: Optional[float] = Field(None, description="Unix time of last publish")


class HistoryEntry(BaseModel):
    timestamp: int
    labels: List[str]


class HistoryResponse(BaseModel):
    events: List[HistoryEntry]


class StatusResponse(BaseModel):
    ready: bool = Field(..., description="Capture device and model are usable")
    detection_state: str = Field(..., description="idle|running")
    listening: bool
    last_spoken: Optional[str] = None
    stats: Dict[str, float] = Field(default_factory=dict)


class ControlResponse(BaseModel):
    ok: bool
    detection_state: str
    listening: bool


class CommandRequest(BaseModel):
    transcript: str


class CommandResponse(BaseModel):
    response: Optional[str] = Field(None, description="Spoken answer, null for empty transcripts")

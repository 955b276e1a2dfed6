from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from ..api_models import (
    CommandRequest,
    CommandResponse,
    ControlResponse,
    DetectionsResponse,
    HistoryResponse,
    StatusResponse,
)

router = APIRouter()


def _assistant(request: Request):
    assistant = getattr(request.app.state, "assistant", None)
    if assistant is None:
        raise HTTPException(status_code=503, detail="Assistant not initialized")
    return assistant


def _control_response(assistant, ok: bool) -> dict:
    return {
        "ok": ok,
        "detection_state": assistant.engine.state.value,
        "listening": assistant.is_listening,
    }


@router.get("/status", response_model=StatusResponse)
def status(request: Request):
    """
    Status for UI polling:
    - ready: capture device open and model loaded
    - detection_state: idle|running
    - listening: voice recognition active
    - stats: counters for the current detection session
    """
    assistant = _assistant(request)
    return {
        "ready": assistant.is_ready,
        "detection_state": assistant.engine.state.value,
        "listening": assistant.is_listening,
        "last_spoken": assistant.speech.last_spoken,
        "stats": assistant.engine.stats.to_dict(),
    }


@router.get("/detections", response_model=DetectionsResponse)
def detections(request: Request):
    assistant = _assistant(request)
    frame = assistant.current_frame
    payload = frame.to_dict()
    payload["updated_at"] = assistant.engine.detection_state.updated_at
    return payload


@router.get("/history", response_model=HistoryResponse)
def history(request: Request):
    assistant = _assistant(request)
    return {"events": [e.to_dict() for e in assistant.history()]}


@router.post("/detection/start", response_model=ControlResponse)
def start_detection(request: Request):
    assistant = _assistant(request)
    ok = assistant.call_in_loop(assistant.start_detection)
    if not ok and not assistant.is_detecting:
        logging.info("Detection start requested but not ready")
    return _control_response(assistant, assistant.is_detecting)


@router.post("/detection/stop", response_model=ControlResponse)
def stop_detection(request: Request):
    assistant = _assistant(request)
    assistant.call_in_loop(assistant.stop_detection)
    return _control_response(assistant, True)


@router.post("/listening/start", response_model=ControlResponse)
def start_listening(request: Request):
    assistant = _assistant(request)
    ok = assistant.call_in_loop(assistant.start_listening)
    return _control_response(assistant, bool(ok))


@router.post("/listening/stop", response_model=ControlResponse)
def stop_listening(request: Request):
    assistant = _assistant(request)
    ok = assistant.call_in_loop(assistant.stop_listening)
    return _control_response(assistant, bool(ok))


@router.post("/command", response_model=CommandResponse)
def command(body: CommandRequest, request: Request):
    """Answer a typed or externally transcribed question; the answer is also spoken."""
    assistant = _assistant(request)
    response = assistant.call_in_loop(assistant.handle_command, body.transcript)
    return {"response": response}

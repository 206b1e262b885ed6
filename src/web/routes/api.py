from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile

from aggregation.presentation import derive_view
from capture.base import CameraPermissionDenied, CaptureDeviceError
from inference.backend import InferenceUnavailable
from models.batch import DetectionMode
from pipeline.engine import STRATEGIES
from runtime.context import RuntimeContext

from ..api_models import (
    BatchResponse,
    HealthResponse,
    LabelsResponse,
    LiveStatusResponse,
    ThresholdRequest,
)
from ..services.health_service import HealthService

router = APIRouter()


def get_context(request: Request) -> RuntimeContext:
    return request.app.state.ctx


async def _require_classifier(ctx: RuntimeContext) -> None:
    """503 until the classifier has loaded; each call retries a failed load."""
    try:
        await ctx.classifier.get()
    except InferenceUnavailable as e:
        raise HTTPException(status_code=503, detail=f"Part identification model is not available: {e}")


def _live_status(ctx: RuntimeContext) -> LiveStatusResponse:
    live = ctx.live
    return LiveStatusResponse(
        active=live.active,
        threshold=live.threshold,
        generation=live.generation,
        dropped_ticks=live.dropped_ticks,
        last_error=live.last_error,
        results=BatchResponse.from_view(live.view(), live.batch),
    )


@router.get("/health", response_model=HealthResponse)
def health(ctx: RuntimeContext = Depends(get_context)):
    return HealthService(ctx=ctx).get_health_summary()


@router.get("/labels", response_model=LabelsResponse)
def labels(ctx: RuntimeContext = Depends(get_context)):
    return LabelsResponse(labels=ctx.labels)


@router.post("/identify", response_model=BatchResponse)
async def identify(
    file: UploadFile = File(...),
    threshold: Optional[float] = Form(None),
    strategy: Optional[str] = Form(None),
    ctx: RuntimeContext = Depends(get_context),
):
    if file.content_type and not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Please select a valid image file")
    if threshold is not None and not 0.0 <= threshold <= 1.0:
        raise HTTPException(status_code=400, detail="threshold must be between 0 and 1")
    if strategy is not None and strategy not in STRATEGIES:
        raise HTTPException(status_code=400, detail=f"strategy must be one of: {', '.join(STRATEGIES)}")

    await _require_classifier(ctx)
    data = await file.read()
    try:
        batch = await ctx.pipeline.identify_upload(data, threshold=threshold, strategy=strategy)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except InferenceUnavailable as e:
        logging.error(f"Error processing upload {file.filename}: {e}")
        raise HTTPException(status_code=502, detail=f"Processing failed: {e}")

    return BatchResponse.from_view(derive_view(batch, DetectionMode.UPLOAD), batch)


@router.post("/live/start", response_model=LiveStatusResponse)
async def live_start(ctx: RuntimeContext = Depends(get_context)):
    await _require_classifier(ctx)
    try:
        await ctx.live.start()
    except CameraPermissionDenied as e:
        raise HTTPException(status_code=403, detail=e.user_message)
    except CaptureDeviceError as e:
        raise HTTPException(status_code=503, detail=e.user_message)
    return _live_status(ctx)


@router.post("/live/stop", response_model=LiveStatusResponse)
async def live_stop(ctx: RuntimeContext = Depends(get_context)):
    await ctx.live.stop()
    return _live_status(ctx)


@router.get("/live/results", response_model=LiveStatusResponse)
def live_results(ctx: RuntimeContext = Depends(get_context)):
    return _live_status(ctx)


@router.put("/live/threshold", response_model=LiveStatusResponse)
def live_threshold(req: ThresholdRequest, ctx: RuntimeContext = Depends(get_context)):
    if req.preset is not None:
        try:
            ctx.live.apply_preset(req.preset)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    elif req.value is not None:
        ctx.live.set_threshold(req.value)
    else:
        raise HTTPException(status_code=400, detail="Provide either value or preset")
    return _live_status(ctx)

import base64
from typing import Union

from fastapi.responses import JSONResponse, Response, StreamingResponse
from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool
from urllib3.filepost import encode_multipart_formdata

from app.models.video import DownloadedAsset, ExtractionRequest, OutputMode, VideoStream
from app.workers.platform_detector import detect_ad_platform

VIDEO_MIME = "video/mp4"

Payload = Union[DownloadedAsset, VideoStream]


def video_mime(content_type: str) -> str:
    media_type = (content_type or "").split(";")[0].strip().lower()
    return media_type if media_type.startswith("video/") else VIDEO_MIME


def attachment_headers(filename: str) -> dict:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


def raw_attachment(asset: DownloadedAsset, filename: str) -> Response:
    return Response(
        content=asset.content,
        media_type=video_mime(asset.content_type),
        headers=attachment_headers(filename),
    )


def streamed_attachment(stream: VideoStream, filename: str) -> StreamingResponse:
    return StreamingResponse(
        stream.iter_chunks(),
        media_type=video_mime(stream.content_type),
        headers=attachment_headers(filename),
        background=BackgroundTask(stream.close),
    )


def multipart_form(asset: DownloadedAsset, request: ExtractionRequest) -> Response:
    """Wrap the video plus auxiliary string fields into a multipart/form-data body."""
    fields = [("video", (request.filename, asset.content, VIDEO_MIME))]
    fields.extend(request.form_fields)
    body, content_type = encode_multipart_formdata(fields)
    return Response(content=body, media_type=content_type)


def base64_json(asset: DownloadedAsset, request: ExtractionRequest) -> JSONResponse:
    return JSONResponse({
        "platform": detect_ad_platform(request.target_url),
        "videoUrl": asset.source_url,
        "base64": base64.b64encode(asset.content).decode("ascii"),
    })


async def deliver(payload: Payload, request: ExtractionRequest) -> Response:
    """Turn the selected video into the HTTP response the caller asked for."""
    if isinstance(payload, VideoStream):
        if request.output_mode == OutputMode.RAW_ATTACHMENT:
            return streamed_attachment(payload, request.filename)
        payload = await run_in_threadpool(payload.read_all)

    if request.output_mode == OutputMode.RAW_ATTACHMENT:
        return raw_attachment(payload, request.filename)
    if request.output_mode == OutputMode.MULTIPART_FORM:
        return multipart_form(payload, request)
    if request.output_mode == OutputMode.BASE64_JSON:
        return base64_json(payload, request)
    raise ValueError(f"Unsupported output mode: {request.output_mode}")

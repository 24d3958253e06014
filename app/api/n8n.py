"""
Relay to the n8n workflow webhooks.

Each route forwards the inbound payload to one fixed webhook URL and
republishes the webhook's answer.
"""
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from starlette.datastructures import UploadFile

from app.config import N8N_WEBHOOKS
from app.errors import ValidationError
from app.logger import get_logger
from app.workers.n8n_client import N8nClient, get_webhook_url, workflow_key

logger = get_logger("n8n")

router = APIRouter(prefix="/api/n8n")

_client = N8nClient()


def get_n8n_client() -> N8nClient:
    return _client


class AdsRecreatorRequest(BaseModel):
    video: Optional[str] = None
    brandUrl: Optional[str] = None
    email: Optional[str] = None
    metaLink: Optional[str] = None


@router.post("/facebook-ads-recreator")
async def facebook_ads_recreator(body: AdsRecreatorRequest, client: N8nClient = Depends(get_n8n_client)):
    """Sends video and brand data to the Facebook ads recreation workflow."""
    for field in ("video", "brandUrl", "email"):
        if not getattr(body, field):
            raise ValidationError(f"Missing required field: {field}")

    logger.info(f"N8N Facebook Ads Recreator request: brandUrl={body.brandUrl} metaLink={body.metaLink or 'uploaded'}")
    data = await client.forward(
        "FACEBOOK_ADS_RECREATOR",
        data={
            "video": body.video,
            "brandUrl": body.brandUrl,
            "email": body.email,
            "metaLink": body.metaLink or "uploaded",
        },
    )
    return {
        "success": True,
        "message": "Facebook ads recreation request sent successfully",
        "data": data,
    }


@router.post("/webhooks/{workflow}")
async def relay_webhook(workflow: str, request: Request, client: N8nClient = Depends(get_n8n_client)):
    """Forward a JSON or multipart body to the webhook registered for workflow."""
    key = workflow_key(workflow)
    get_webhook_url(key)  # 404 before reading the body

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        fields, files = {}, []
        for name, value in form.multi_items():
            if isinstance(value, UploadFile):
                files.append((name, (value.filename, await value.read(), value.content_type or "application/octet-stream")))
            else:
                fields[name] = value
        data = await client.forward(key, data=fields, files=files)
    else:
        try:
            payload = await request.json()
        except ValueError:
            raise ValidationError("Request body must be JSON or multipart/form-data")
        data = await client.forward(key, json_body=payload)

    return {"success": True, "data": data}


@router.get("/health")
async def n8n_health():
    logger.info("N8N health check")
    return {
        "status": "healthy",
        "service": "n8n",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "endpoints": ["POST /facebook-ads-recreator"] + [
            f"POST /webhooks/{key.lower().replace('_', '-')}" for key in N8N_WEBHOOKS
        ],
    }

from typing import Any, Dict, List, Optional, Tuple

import requests
from starlette.concurrency import run_in_threadpool

from app.config import N8N_WEBHOOKS, WEBHOOK_TIMEOUT_MS
from app.errors import NotFoundError, WebhookError
from app.logger import get_logger

logger = get_logger("n8n")

FileField = Tuple[str, Tuple[str, bytes, str]]


def workflow_key(workflow: str) -> str:
    """'hook-recreator' → 'HOOK_RECREATOR'"""
    return workflow.strip().replace("-", "_").upper()


def get_webhook_url(key: str) -> str:
    if key not in N8N_WEBHOOKS:
        raise NotFoundError(f"Webhook '{key}'")
    return N8N_WEBHOOKS[key]


def post_to_webhook(
    key: str,
    data: Optional[Dict[str, Any]] = None,
    files: Optional[List[FileField]] = None,
    json_body: Optional[Any] = None,
    timeout_ms: int = WEBHOOK_TIMEOUT_MS,
) -> Any:
    """
    Forward a payload to one of the fixed workflow webhooks and return its response.
    data/files go out as multipart/form-data, json_body as application/json.
    """
    url = get_webhook_url(key)
    logger.info(f"📤 Forwarding to {key}")

    if json_body is not None:
        res = requests.post(url, json=json_body, timeout=timeout_ms / 1000)
    else:
        # (None, value) parts make requests send multipart even without files
        parts = [(name, (None, str(value))) for name, value in (data or {}).items()]
        parts.extend(files or [])
        res = requests.post(url, files=parts, timeout=timeout_ms / 1000)

    if not res.ok:
        logger.error(f"❌ {key} webhook error: {res.status_code} {res.reason} {res.text[:500]}")
        raise WebhookError(res.status_code, res.reason or "", res.text)

    logger.info(f"✅ {key} webhook answered {res.status_code}")
    try:
        return res.json()
    except ValueError:
        return res.text


class N8nClient:
    async def forward(self, key: str, **kwargs) -> Any:
        return await run_in_threadpool(post_to_webhook, key, **kwargs)

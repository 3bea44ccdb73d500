# ============================================================================
# services/workflow.py - n8n Workflow Backend
# ============================================================================
"""Adapter around the n8n webhooks that do the actual media generation.

n8n answers in several shapes: a JSON object, a JSON string holding JSON,
URLs wrapped in backticks, a plain-text "Internal Server Error", or an
empty body. All of that is normalized here; callers only ever see a
`WorkflowResult` or one of the upstream errors.
"""

import json
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx

from fashionx.core.config import settings
from fashionx.core.errors import InternalError, UpstreamError, UpstreamTimeout, UpstreamUnavailable

logger = logging.getLogger(__name__)


class WorkflowMode(str, Enum):
    IMAGE_EDIT = "image-edit"
    TEXT_TO_VIDEO = "text-to-video"
    IMAGE_TO_VIDEO = "image-to-video"
    AUDIO_TO_VIDEO = "audio-to-video"

    @property
    def is_video(self) -> bool:
        return self is not WorkflowMode.IMAGE_EDIT

    @property
    def webhook_url(self) -> str:
        return {
            WorkflowMode.IMAGE_EDIT: settings.WEBHOOK_IMAGE_EDIT,
            WorkflowMode.TEXT_TO_VIDEO: settings.WEBHOOK_TEXT_TO_VIDEO,
            WorkflowMode.IMAGE_TO_VIDEO: settings.WEBHOOK_IMAGE_TO_VIDEO,
            WorkflowMode.AUDIO_TO_VIDEO: settings.WEBHOOK_AUDIO_TO_VIDEO,
        }[self]

    @property
    def timeout(self) -> float:
        return settings.VIDEO_TIMEOUT if self.is_video else settings.IMAGE_EDIT_TIMEOUT


@dataclass
class WorkflowResult:
    data: Dict[str, Any]
    asset_url: Optional[str] = None
    task_id: Optional[str] = None
    elapsed_ms: int = 0


def is_valid_url(value: Optional[str]) -> bool:
    if not value or not isinstance(value, str):
        return False
    parsed = urlparse(value.strip())
    return bool(parsed.scheme and parsed.netloc)


def clean_url(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    cleaned = value.replace("`", "").strip()
    return cleaned or None


def _decode_nested(value: Any) -> Any:
    """Decode a `resultJson`-style string that holds JSON; keep it as-is otherwise"""
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value.replace("`", ""))
    except ValueError:
        logger.warning("Could not decode nested resultJson string")
        return value


def parse_workflow_body(text: Optional[str]) -> Dict[str, Any]:
    """Turn a raw webhook body into a dict, or raise UpstreamError"""
    if text is None or not text.strip():
        raise UpstreamError("Empty response from the processing service")

    body = text.strip()
    if body.startswith("Internal S"):
        logger.error(f"Workflow returned a server error: {body[:200]}")
        raise UpstreamError("The processing service failed to handle the request")

    try:
        data = json.loads(body)
        # Some workflows encode their JSON twice
        if isinstance(data, str):
            data = json.loads(data.replace("`", ""))
    except ValueError:
        logger.error(f"Workflow returned a non-JSON body: {body[:200]}")
        raise UpstreamError("Invalid response from the processing service")

    if isinstance(data, list):
        data = data[0] if data and isinstance(data[0], dict) else {"items": data}
    if not isinstance(data, dict):
        raise UpstreamError("Invalid response from the processing service")
    if "resultJson" in data:
        data["resultJson"] = _decode_nested(data["resultJson"])
    inner = data.get("data")
    if isinstance(inner, dict) and "resultJson" in inner:
        inner["resultJson"] = _decode_nested(inner["resultJson"])

    return data


def _first_url(value: Any) -> Optional[str]:
    if isinstance(value, list) and value:
        return clean_url(value[0])
    return None


def extract_asset_url(data: Dict[str, Any]) -> Optional[str]:
    """Pick the generated asset URL; first match wins"""
    result_json = data.get("resultJson") if isinstance(data.get("resultJson"), dict) else {}
    inner = data.get("data") if isinstance(data.get("data"), dict) else {}
    inner_result = inner.get("resultJson") if isinstance(inner.get("resultJson"), dict) else {}

    candidates = (
        _first_url(result_json.get("resultUrls")),
        clean_url(result_json.get("videoUrl")),
        clean_url(data.get("videoUrl")),
        _first_url(data.get("resultUrls")),
        clean_url(inner.get("videoUrl")),
        _first_url(inner_result.get("resultUrls")),
    )
    for candidate in candidates:
        if candidate:
            return candidate
    return None


def _clean_url_lists(data: Dict[str, Any]) -> None:
    for container in (data, data.get("resultJson"), data.get("data")):
        if isinstance(container, dict) and isinstance(container.get("resultUrls"), list):
            container["resultUrls"] = [clean_url(url) for url in container["resultUrls"] if clean_url(url)]


def _upstream_message(response: httpx.Response) -> str:
    try:
        body = response.json()
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
    except ValueError:
        pass
    return response.reason_phrase or "Failed to process the request"


class WorkflowBackend:
    """Submits one generation request to the n8n webhook of its mode"""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    def _resolve_url(self, mode: WorkflowMode) -> str:
        url = mode.webhook_url
        if not url:
            raise InternalError(f"{mode.value} webhook URL is not configured")
        if not is_valid_url(url):
            logger.error(f"Invalid {mode.value} webhook URL format: {url}")
            raise InternalError(f"Invalid {mode.value} webhook URL format")
        return url

    async def submit(self, mode: WorkflowMode, payload: Dict[str, Any]) -> WorkflowResult:
        url = self._resolve_url(mode)
        logger.info(f"🔄 Sending {mode.value} request to workflow: {url}")

        t0 = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=mode.timeout, transport=self.transport) as client:
                response = await client.post(url, json=payload)
                response.raise_for_status()
        except httpx.TimeoutException:
            logger.error(f"❌ Workflow {mode.value} request timed out after {mode.timeout}s")
            kind = "video" if mode.is_video else "image"
            raise UpstreamTimeout(f"Workflow request timed out. The {kind} processing is taking too long.")
        except httpx.ConnectError as e:
            logger.error(f"❌ Workflow {mode.value} connection refused: {e}")
            raise UpstreamUnavailable("Workflow connection refused. The service might be down.")
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.error(f"❌ Workflow {mode.value} returned HTTP {status_code}: {e.response.text[:200]}")
            if status_code == 404:
                raise UpstreamUnavailable(
                    hint="The n8n workflow may need to be activated. Please ensure the workflow is running."
                )
            raise UpstreamError(_upstream_message(e.response), status_code=status_code)
        except httpx.HTTPError as e:
            logger.error(f"❌ Workflow {mode.value} request failed: {e}")
            raise UpstreamError(str(e) or "Failed to process the request", status_code=500)

        elapsed_ms = int((time.perf_counter() - t0) * 1000)
        data = parse_workflow_body(response.text)
        _clean_url_lists(data)
        asset_url = extract_asset_url(data)
        if asset_url:
            logger.info(f"✅ Workflow {mode.value} finished in {elapsed_ms}ms: {asset_url}")
        else:
            logger.warning(f"Workflow {mode.value} finished in {elapsed_ms}ms but no result URL was found")

        return WorkflowResult(
            data=data,
            asset_url=asset_url,
            task_id=data.get("taskId") if isinstance(data.get("taskId"), str) else None,
            elapsed_ms=elapsed_ms,
        )

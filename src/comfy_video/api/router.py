import base64
import binascii
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Security, status
from pydantic import BaseModel, Field

from comfy_video.api.auth import get_api_key
from comfy_video.config.settings import get_settings
from comfy_video.errors import ComfyUIApiError
from comfy_video.models.request import BinaryAttachment, ComfyUIConnection, GenerationRequest
from comfy_video.services.comfyui_client import ComfyUIClient
from comfy_video.services.workflow_service import run_image_audio_to_video

router = APIRouter()


class AttachmentPayload(BaseModel):
    """Binary attachment sent as base64 over JSON."""
    data: str = Field(..., description="Base64 encoded content")
    mime_type: str = ""
    file_name: Optional[str] = None


class GenerationRequestBody(GenerationRequest):
    attachments: Dict[str, AttachmentPayload] = Field(default_factory=dict)


def decode_attachments(payloads: Dict[str, AttachmentPayload]) -> Dict[str, BinaryAttachment]:
    attachments = {}
    for name, payload in payloads.items():
        try:
            data = base64.b64decode(payload.data)
        except (binascii.Error, ValueError) as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Attachment '{name}' is not valid base64: {str(e)}",
            )
        attachments[name] = BinaryAttachment(data=data, mime_type=payload.mime_type, file_name=payload.file_name)
    return attachments


@router.get("/health")
async def health_check():
    """Simple health check endpoint."""
    return {"status": "ok"}


@router.get("/services/status")
async def get_services_status(api_key: str = Security(get_api_key)):
    """
    Check that the ComfyUI backend answers /system_stats.
    """
    settings = get_settings()
    connection = ComfyUIConnection(api_url=settings.COMFYUI_API_URL, api_key=settings.COMFYUI_API_KEY)
    services: Dict[str, Any] = {}

    try:
        async with ComfyUIClient(connection, timeout=5) as client:
            await client.check_health()
        services["comfyui"] = {"status": "up"}
    except Exception as e:
        services["comfyui"] = {"status": "down", "error": str(e)}

    return services


@router.post("/workflows/image-audio-to-video")
async def image_audio_to_video(body: GenerationRequestBody, api_key: str = Security(get_api_key)):
    """
    Animate an image (optionally with an audio track) through a ComfyUI workflow.

    The workflow must contain a LoadImage node, and a LoadAudio node when audio
    is attached. Blocks until the video is ready or the timeout expires.
    """
    attachments = decode_attachments(body.attachments)
    request = GenerationRequest(**body.model_dump(exclude={"attachments"}))

    try:
        result = await run_image_audio_to_video(request, attachments)
    except ComfyUIApiError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail={"message": e.message, "description": e.description},
        )

    return result.to_response()

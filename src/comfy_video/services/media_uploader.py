import logging

from pydantic import ValidationError

from comfy_video.errors import UploadFailed
from comfy_video.models.job import MediaAsset
from comfy_video.services.comfyui_client import ComfyUIClient

logger = logging.getLogger(__name__)

# Fixed upload names so the graph patch never depends on the caller's filename
IMAGE_UPLOAD_NAME = "input.png"
AUDIO_UPLOAD_NAME = "input.mp3"


async def upload(client: ComfyUIClient, content: bytes, filename: str) -> MediaAsset:
    """
    Upload a buffer to the backend asset store with overwrite enabled.

    Args:
        client: Open backend client
        content: Raw file bytes
        filename: Name to store the file under

    Returns:
        The asset handle; its ``name`` is authoritative for graph patching

    Raises:
        UploadFailed: on an error status or a response that is not a valid handle
    """
    logger.info(f"[ComfyUI] Uploading file {filename} ({len(content)} bytes)...")
    response = await client.upload_image(content, filename)

    if response.is_error:
        raise UploadFailed(
            f"Upload of {filename} failed with status {response.status_code}",
            description=response.text,
        )

    try:
        info = response.json()
    except ValueError as e:
        raise UploadFailed(f"Upload of {filename} returned an unreadable response", description=str(e))

    if not isinstance(info, dict):
        raise UploadFailed(f"Upload of {filename} returned an unexpected response", description=response.text)

    try:
        asset = MediaAsset(**info)
    except ValidationError as e:
        raise UploadFailed(f"Upload of {filename} returned an invalid asset handle", description=str(e))

    if asset.name != filename:
        logger.warning(f"[ComfyUI] Backend stored {filename} as {asset.name}")
    logger.info(f"[ComfyUI] Upload response for {filename}: {asset.model_dump()}")
    return asset

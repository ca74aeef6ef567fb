"""
Resolve the caller's input media into raw bytes.

The image arrives as a remote URL, inline base64 or an attached binary.
Attached binaries are looked up by name first and, for the image only, by
MIME category as a fallback.
"""
import base64
import binascii
import logging
from typing import Dict, Optional, Tuple

from comfy_video.errors import InvalidInputMedia
from comfy_video.models.request import BinaryAttachment, GenerationRequest, InputType
from comfy_video.services.comfyui_client import ComfyUIClient

logger = logging.getLogger(__name__)

Attachments = Dict[str, BinaryAttachment]


def find_attachment(attachments: Attachments, name: str) -> Optional[BinaryAttachment]:
    """Exact lookup by property name."""
    if not name:
        return None
    return attachments.get(name)


def find_attachment_by_category(attachments: Attachments, category: str) -> Optional[Tuple[str, BinaryAttachment]]:
    """First attachment whose MIME type belongs to ``category`` (e.g. "image")."""
    prefix = f"{category}/"
    for name, attachment in attachments.items():
        if (attachment.mime_type or "").startswith(prefix):
            return name, attachment
    return None


def require_category(attachment: BinaryAttachment, category: str, label: str):
    mime_type = attachment.mime_type or ""
    if not mime_type.startswith(f"{category}/"):
        raise InvalidInputMedia(f"Invalid media type for {label}: {mime_type or 'unknown'}. Only {category} is supported.")


def binary_image(attachments: Attachments, property_name: str) -> bytes:
    """
    Raises:
        InvalidInputMedia: if neither the named attachment nor any image attachment exists,
            or the chosen attachment is not an image
    """
    logger.info(f"[ComfyUI] Looking for binary property: {property_name}")
    logger.debug(f"[ComfyUI] Available binary properties: {list(attachments)}")

    attachment = find_attachment(attachments, property_name)
    if attachment is None:
        logger.info(f'[ComfyUI] Binary property "{property_name}" not found, searching for alternatives...')
        fallback = find_attachment_by_category(attachments, "image")
        if fallback is None:
            raise InvalidInputMedia(
                f'No binary data found in property "{property_name}" and no image alternatives found'
            )
        fallback_name, attachment = fallback
        logger.info(f'[ComfyUI] Found alternative image property: "{fallback_name}"')

    require_category(attachment, "image", "input image")
    logger.info(f"[ComfyUI] Got binary data, size: {len(attachment.data)} bytes, mime type: {attachment.mime_type}")
    return attachment.data


def decode_base64_image(data: str) -> bytes:
    # Tolerate data URLs pasted as-is
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        return base64.b64decode(data, validate=False)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputMedia("Input image is not valid base64 data", description=str(e))


async def download_image(client: ComfyUIClient, url: str) -> bytes:
    logger.info(f"[ComfyUI] Downloading image from URL: {url}")
    response = await client.get_bytes(url, with_auth=False)
    response.raise_for_status()
    return response.content


async def resolve_image(client: ComfyUIClient, request: GenerationRequest, attachments: Attachments) -> bytes:
    if request.input_type == InputType.URL:
        content = await download_image(client, request.input_image)
    elif request.input_type == InputType.BINARY:
        content = binary_image(attachments, request.binary_property_name)
    else:
        content = decode_base64_image(request.input_image)

    if not content:
        raise InvalidInputMedia("Input image is empty")
    return content


def resolve_audio(attachments: Attachments, property_name: str) -> Optional[bytes]:
    """
    Return the audio bytes to attach, or None when no audio should be uploaded.

    A configured but missing property is skipped, not an error.

    Raises:
        InvalidInputMedia: if the named attachment is not audio
    """
    if not property_name:
        return None

    attachment = find_attachment(attachments, property_name)
    if attachment is None:
        logger.info(f'[ComfyUI] Audio binary property "{property_name}" not found, skipping audio upload.')
        return None

    logger.info(f"[ComfyUI] Preparing audio upload from property: {property_name}")
    if not (attachment.mime_type or "").startswith("audio/"):
        raise InvalidInputMedia(
            f"Provided audio binary property is not audio (mime: {attachment.mime_type})"
        )
    return attachment.data

"""
End-to-end image (+ optional audio) to video generation against ComfyUI.

upload -> patch -> submit -> poll -> resolve -> fetch, strictly in sequence.
Any failure aborts the whole run and is reported as one ComfyUIApiError.
"""
import logging
from typing import Dict, Optional

import httpx

from comfy_video.config.settings import Settings, get_settings
from comfy_video.errors import ComfyUIApiError, WorkflowError
from comfy_video.models.graph import WorkflowGraph
from comfy_video.models.request import (
    BinaryAttachment, ComfyUIConnection, GenerationRequest, GenerationResult
)
from comfy_video.services import graph_patcher, input_media, job_submitter, media_uploader, output_resolver
from comfy_video.services.comfyui_client import ComfyUIClient
from comfy_video.services.job_poller import JobPoller, Sleeper

logger = logging.getLogger(__name__)


async def generate_video(
    client: ComfyUIClient,
    request: GenerationRequest,
    attachments: Optional[Dict[str, BinaryAttachment]] = None,
    poller: Optional[JobPoller] = None,
) -> GenerationResult:
    """
    Run the workflow on an open client. Errors propagate unwrapped.

    Args:
        client: Open backend client
        request: Workflow text, input mode and timeout
        attachments: Binary items keyed by property name
        poller: Poller to wait with; built from ``request.timeout`` if omitted

    Returns:
        The downloaded video and its metadata
    """
    attachments = attachments or {}

    logger.info("[ComfyUI] Checking API connection...")
    await client.check_health()

    image_bytes = await input_media.resolve_image(client, request, attachments)
    image_asset = await media_uploader.upload(client, image_bytes, media_uploader.IMAGE_UPLOAD_NAME)

    audio_asset = None
    audio_bytes = input_media.resolve_audio(attachments, request.audio_binary_property_name)
    if audio_bytes is not None:
        audio_asset = await media_uploader.upload(client, audio_bytes, media_uploader.AUDIO_UPLOAD_NAME)

    graph = WorkflowGraph.parse(request.workflow)
    graph_patcher.patch_image(graph, image_asset)
    graph_patcher.patch_audio(graph, audio_asset)

    job = await job_submitter.submit(client, graph)

    poller = poller or JobPoller(client, request.timeout)
    entry = await poller.wait(job)

    output = output_resolver.resolve(entry, client.base_url)
    data = await output_resolver.fetch(client, output)
    mime_type, file_extension = output_resolver.media_type_for(output.filename)
    logger.info(f"[ComfyUI] Fetched {output.filename} ({len(data)} bytes, {mime_type})")

    return GenerationResult(
        data=data,
        mime_type=mime_type,
        file_name=output.filename,
        file_extension=file_extension,
        file_size=output_resolver.format_file_size(len(data)),
        status=entry.status,
    )


async def run_image_audio_to_video(
    request: GenerationRequest,
    attachments: Optional[Dict[str, BinaryAttachment]] = None,
    connection: Optional[ComfyUIConnection] = None,
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    sleep: Optional[Sleeper] = None,
) -> GenerationResult:
    """
    Run the workflow with its own client and report any failure uniformly.

    Raises:
        ComfyUIApiError: for every failure, with the original error as ``__cause__``
    """
    settings = settings or get_settings()
    connection = connection or ComfyUIConnection(
        api_url=settings.COMFYUI_API_URL, api_key=settings.COMFYUI_API_KEY
    )
    logger.info(f"[ComfyUI] Executing image to video conversion with API URL: {connection.api_url}")
    if connection.api_key:
        logger.info("[ComfyUI] Using API key authentication")

    try:
        async with ComfyUIClient(connection, timeout=settings.REQUEST_TIMEOUT_SECONDS, transport=transport) as client:
            poller = JobPoller(
                client,
                request.timeout,
                warmup=settings.POLL_WARMUP_SECONDS,
                interval=settings.POLL_INTERVAL_SECONDS,
                sleep=sleep,
            )
            return await generate_video(client, request, attachments, poller)
    except (WorkflowError, httpx.HTTPError, ValueError) as e:
        logger.error(f"[ComfyUI] Video generation error: {e}")
        raise ComfyUIApiError.wrap(e) from e

"""
Pick the video a completed job produced and download it.
"""
import logging
import math
from typing import List, Tuple
from urllib.parse import urlencode

from comfy_video.errors import NoMediaOutputs, NoVideoOutputs, OutputNotFound
from comfy_video.models.job import HistoryEntry, OutputDescriptor
from comfy_video.services.comfyui_client import ComfyUIClient

logger = logging.getLogger(__name__)

# Output kinds that are fetchable through /view; previews and inputs are skipped
FETCHABLE_KINDS = ("output", "temp")

VIDEO_EXTENSIONS = (".webp", ".mp4", ".gif")

# extension -> (mime type, extension label); anything unmatched is treated as webp
MEDIA_TYPES = {
    ".webp": ("image/webp", "webp"),
    ".mp4": ("video/mp4", "mp4"),
    ".gif": ("image/gif", "gif"),
}
DEFAULT_MEDIA_TYPE = MEDIA_TYPES[".webp"]


def view_url(base_url: str, filename: str, subfolder: str, kind: str) -> str:
    query = urlencode({"filename": filename, "subfolder": subfolder or "", "type": kind})
    return f"{base_url}/view?{query}"


def collect_media_outputs(entry: HistoryEntry, base_url: str) -> List[OutputDescriptor]:
    """
    Flatten image and animation outputs of every node, in backend order.

    Raises:
        NoMediaOutputs: if no fetchable media output exists
    """
    outputs = [
        OutputDescriptor(
            filename=item.filename,
            subfolder=item.subfolder,
            type=item.type,
            url=view_url(base_url, item.filename, item.subfolder, item.type),
        )
        for group in entry.outputs.values()
        for item in group.media_files()
        if item.type in FETCHABLE_KINDS
    ]
    logger.info(f"[ComfyUI] Found media outputs: {[output.filename for output in outputs]}")

    if not outputs:
        raise NoMediaOutputs("[ComfyUI] No media outputs found in results")
    return outputs


def is_video(output: OutputDescriptor) -> bool:
    return output.filename.endswith(VIDEO_EXTENSIONS)


def select_video_output(outputs: List[OutputDescriptor]) -> OutputDescriptor:
    """
    Return the first output with an animated/video extension.

    Raises:
        NoVideoOutputs: if the job produced only still images
    """
    videos = [output for output in outputs if is_video(output)]
    if not videos:
        raise NoVideoOutputs("[ComfyUI] No video outputs found in results")
    logger.info(f"[ComfyUI] Found video outputs: {[video.filename for video in videos]}")
    return videos[0]


def resolve(entry: HistoryEntry, base_url: str) -> OutputDescriptor:
    return select_video_output(collect_media_outputs(entry, base_url))


async def fetch(client: ComfyUIClient, output: OutputDescriptor) -> bytes:
    """
    Download an output's bytes.

    Raises:
        OutputNotFound: if the backend reports 404 for the file
    """
    response = await client.get_bytes(output.url)
    if response.status_code == 404:
        raise OutputNotFound(f"Video file not found at {output.url}")
    response.raise_for_status()
    return response.content


def media_type_for(filename: str) -> Tuple[str, str]:
    for extension, media_type in MEDIA_TYPES.items():
        if filename.endswith(extension):
            return media_type
    return DEFAULT_MEDIA_TYPE


def format_file_size(size: int) -> str:
    kilobytes = math.floor(size / 1024 * 10 + 0.5) / 10
    label = f"{kilobytes:.1f}"
    if label.endswith(".0"):
        label = label[:-2]
    return f"{label} kB"

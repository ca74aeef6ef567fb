"""
Point the workflow's loader nodes at the uploaded assets.
"""
import logging
from typing import Optional

from comfy_video.errors import MissingAudioNode, MissingImageNode
from comfy_video.models.graph import GraphNode, WorkflowGraph, node_matcher
from comfy_video.models.job import MediaAsset

logger = logging.getLogger(__name__)

IMAGE_NODE_CLASS = "LoadImage"
AUDIO_NODE_CLASS = "LoadAudio"

# Workflows name the LoadAudio parameter either way; the first one wins
AUDIO_INPUT_KEYS = ("audio", "filename")

is_image_loader = node_matcher(IMAGE_NODE_CLASS, "image")
is_audio_loader = node_matcher(AUDIO_NODE_CLASS, *AUDIO_INPUT_KEYS)


def _first_eligible(graph: WorkflowGraph, predicate, role: str) -> Optional[GraphNode]:
    matches = graph.find_nodes(predicate)
    if len(matches) > 1:
        logger.warning(f"[ComfyUI] Found {len(matches)} {role} nodes, patching the first one")
    return matches[0] if matches else None


def patch_image(graph: WorkflowGraph, asset: MediaAsset) -> GraphNode:
    """
    Set the LoadImage node's image to the uploaded asset.

    Raises:
        MissingImageNode: if no LoadImage node with an image input exists
    """
    node = _first_eligible(graph, is_image_loader, IMAGE_NODE_CLASS)
    if node is None:
        raise MissingImageNode(
            "No LoadImage node found in the workflow. "
            "The workflow must contain a LoadImage node with an image input."
        )
    node.inputs["image"] = asset.name
    logger.info(f"[ComfyUI] LoadImage node updated with image name: {asset.name}")
    return node


def audio_input_key(node: GraphNode) -> str:
    for key in AUDIO_INPUT_KEYS:
        if node.has_input(key):
            return key
    return AUDIO_INPUT_KEYS[0]


def patch_audio(graph: WorkflowGraph, asset: Optional[MediaAsset]) -> Optional[GraphNode]:
    """
    Set the LoadAudio node's file to the uploaded asset; a no-op without audio.

    Raises:
        MissingAudioNode: if audio was uploaded but no eligible LoadAudio node exists
    """
    if asset is None:
        return None

    node = _first_eligible(graph, is_audio_loader, AUDIO_NODE_CLASS)
    if node is None:
        raise MissingAudioNode("Audio binary provided but no LoadAudio node found in the workflow.")

    key = audio_input_key(node)
    node.inputs[key] = asset.name
    logger.info(f"[ComfyUI] LoadAudio node updated with audio name: {asset.name} (input '{key}')")
    return node

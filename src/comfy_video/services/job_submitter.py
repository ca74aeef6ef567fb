import json
import logging

from comfy_video.errors import SubmissionRejected
from comfy_video.models.graph import WorkflowGraph
from comfy_video.models.job import Job
from comfy_video.services.comfyui_client import ComfyUIClient

logger = logging.getLogger(__name__)


def _rejection_details(body) -> str:
    if not isinstance(body, dict):
        return ""
    details = {key: body[key] for key in ("error", "node_errors") if body.get(key)}
    return json.dumps(details) if details else ""


async def submit(client: ComfyUIClient, graph: WorkflowGraph) -> Job:
    """
    Queue the patched workflow for execution.

    Raises:
        SubmissionRejected: if the backend refuses the prompt or returns no prompt id
    """
    logger.info("[ComfyUI] Queueing video generation...")
    response = await client.queue_prompt(graph.to_payload())

    try:
        body = response.json()
    except ValueError:
        body = None

    if response.is_error:
        raise SubmissionRejected(
            f"ComfyUI rejected the workflow with status {response.status_code}",
            description=_rejection_details(body) or response.text,
        )

    if not isinstance(body, dict) or not body.get("prompt_id"):
        raise SubmissionRejected("Failed to get prompt ID from ComfyUI", description=response.text)

    job = Job(prompt_id=str(body["prompt_id"]))
    logger.info(f"[ComfyUI] Video generation queued with ID: {job.prompt_id}")
    return job

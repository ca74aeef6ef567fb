import asyncio

import pytest

from comfy_video.errors import SubmissionRejected
from comfy_video.models.graph import WorkflowGraph
from comfy_video.services.job_submitter import submit

GRAPH_TEXT = '{"3": {"class_type": "LoadImage", "inputs": {"image": "input.png"}}}'


def run_submit(make_client, graph):
    async def go():
        async with make_client() as client:
            return await submit(client, graph)
    return asyncio.run(go())


def test_submit_posts_prompt_and_returns_job(backend, make_client):
    job = run_submit(make_client, WorkflowGraph.parse(GRAPH_TEXT))

    assert job.prompt_id == "prompt-123"
    assert backend.paths("POST") == ["/prompt"]
    assert backend.calls[-1].headers["content-type"] == "application/json"
    assert backend.submitted == [
        {"prompt": {"3": {"class_type": "LoadImage", "inputs": {"image": "input.png"}}}}
    ]


def test_missing_prompt_id_is_rejected(backend, make_client):
    backend.prompt_body = {"number": 3}

    with pytest.raises(SubmissionRejected) as excinfo:
        run_submit(make_client, WorkflowGraph.parse(GRAPH_TEXT))
    assert excinfo.value.message == "Failed to get prompt ID from ComfyUI"


def test_error_status_is_rejected_with_node_errors(backend, make_client):
    backend.prompt_status = 400
    backend.prompt_body = {
        "error": {"type": "prompt_outputs_failed_validation", "message": "Prompt outputs failed validation"},
        "node_errors": {"3": {"errors": [{"message": "Invalid image file"}]}},
    }

    with pytest.raises(SubmissionRejected) as excinfo:
        run_submit(make_client, WorkflowGraph.parse(GRAPH_TEXT))
    assert "Invalid image file" in excinfo.value.description
    assert len(backend.submitted) == 1

import copy
import json

import pytest

from comfy_video.errors import MissingAudioNode, MissingImageNode
from comfy_video.models.graph import WorkflowGraph
from comfy_video.models.job import MediaAsset
from comfy_video.services.graph_patcher import patch_audio, patch_image

IMAGE = MediaAsset(name="input.png", subfolder="", type="input")
AUDIO = MediaAsset(name="input.mp3", subfolder="", type="input")


def graph_of(nodes):
    return WorkflowGraph.parse(json.dumps(nodes))


def test_patch_image_sets_name_and_leaves_other_nodes_alone():
    nodes = {
        "3": {"class_type": "LoadImage", "inputs": {"image": "old.png"}},
        "5": {"class_type": "VHS_VideoCombine", "inputs": {"frame_rate": 8, "images": ["4", 0]}},
    }
    graph = graph_of(nodes)

    patch_image(graph, IMAGE)

    payload = graph.to_payload()
    assert payload["3"]["inputs"]["image"] == "input.png"
    assert payload["5"] == nodes["5"]


def test_patch_image_uses_asset_name_from_backend():
    graph = graph_of({"3": {"class_type": "LoadImage", "inputs": {"image": ""}}})

    patch_image(graph, MediaAsset(name="input (1).png"))

    assert graph.nodes["3"].inputs["image"] == "input (1).png"


@pytest.mark.parametrize("nodes", [
    {},
    {"1": {"class_type": "KSampler", "inputs": {"seed": 1}}},
    {"1": {"class_type": "LoadImage", "inputs": {"upload": "image"}}},
    {"1": {"class_type": "LoadAudio", "inputs": {"audio": ""}}},
    {"1": {"inputs": {}}},
    {"1": "LoadImage"},
])
def test_patch_image_without_eligible_node_fails(nodes):
    with pytest.raises(MissingImageNode):
        patch_image(graph_of(nodes), IMAGE)


def test_patch_image_ignores_stray_entries():
    graph = graph_of({
        "1": "notes about this workflow",
        "3": {"class_type": "LoadImage", "inputs": {"image": "old.png"}},
    })

    patch_image(graph, IMAGE)

    assert graph.to_payload() == {
        "1": "notes about this workflow",
        "3": {"class_type": "LoadImage", "inputs": {"image": "input.png"}},
    }


def test_patch_image_patches_first_of_several_loaders():
    graph = graph_of({
        "1": {"class_type": "LoadImage", "inputs": {"image": "a.png"}},
        "2": {"class_type": "LoadImage", "inputs": {"image": "b.png"}},
    })

    patch_image(graph, IMAGE)

    assert graph.nodes["1"].inputs["image"] == "input.png"
    assert graph.nodes["2"].inputs["image"] == "b.png"


def test_patch_audio_prefers_audio_key():
    graph = graph_of({"8": {"class_type": "LoadAudio", "inputs": {"audio": "x.mp3", "filename": "y.mp3"}}})

    patch_audio(graph, AUDIO)

    assert graph.nodes["8"].inputs == {"audio": "input.mp3", "filename": "y.mp3"}


def test_patch_audio_writes_filename_key():
    graph = graph_of({"8": {"class_type": "LoadAudio", "inputs": {"filename": "y.mp3"}}})

    patch_audio(graph, AUDIO)

    assert graph.nodes["8"].inputs == {"filename": "input.mp3"}


def test_patch_audio_without_asset_is_a_noop():
    nodes = {"3": {"class_type": "LoadImage", "inputs": {"image": ""}}}
    graph = graph_of(nodes)
    before = copy.deepcopy(graph.to_payload())

    assert patch_audio(graph, None) is None
    assert graph.to_payload() == before


def test_patch_audio_with_asset_but_no_node_fails():
    graph = graph_of({
        "3": {"class_type": "LoadImage", "inputs": {"image": ""}},
        "8": {"class_type": "LoadAudio", "inputs": {"seek_seconds": 0}},
    })

    with pytest.raises(MissingAudioNode):
        patch_audio(graph, AUDIO)

#!/usr/bin/env python3
"""
Send an image (and optional audio) through the image-audio-to-video endpoint.

This script:
1. Reads a ComfyUI workflow (API format) and the input media from disk
2. Posts them to the service as base64 attachments
3. Writes the returned video next to the input, or to --output

Usage:
    python run_workflow.py --workflow workflow.json --image face.png [--audio voice.mp3]
"""

import os
import sys
import json
import base64
import argparse
import mimetypes
from typing import Dict, Any, Optional

import requests

DEFAULT_API_URL = "http://localhost:8001"


def encode_attachment(path: str, default_type: str) -> Dict[str, Any]:
    """
    Read a file and wrap it as an attachment payload.

    Args:
        path: File to read
        default_type: MIME type to use when it cannot be guessed from the name

    Returns:
        Attachment dict with base64 data
    """
    with open(path, "rb") as f:
        data = base64.b64encode(f.read()).decode("utf-8")
    return {
        "data": data,
        "mime_type": mimetypes.guess_type(path)[0] or default_type,
        "file_name": os.path.basename(path),
    }


def build_payload(workflow_path: str, image_path: str, audio_path: Optional[str], timeout: float) -> Dict[str, Any]:
    with open(workflow_path, "r") as f:
        workflow = f.read()

    attachments = {"data": encode_attachment(image_path, "image/png")}
    payload = {
        "workflow": workflow,
        "input_type": "binary",
        "binary_property_name": "data",
        "timeout": timeout,
        "attachments": attachments,
    }
    if audio_path:
        attachments["audio"] = encode_attachment(audio_path, "audio/mpeg")
        payload["audio_binary_property_name"] = "audio"
    return payload


def main():
    parser = argparse.ArgumentParser(description='Generate a video from an image through ComfyUI')
    parser.add_argument('--workflow', required=True, help='ComfyUI workflow JSON (API format)')
    parser.add_argument('--image', required=True, help='Input image')
    parser.add_argument('--audio', help='Optional audio track')
    parser.add_argument('--timeout', type=float, default=30, help='Minutes to wait for the video')
    parser.add_argument('--url', default=DEFAULT_API_URL, help='API URL')
    parser.add_argument('--api-key', default=os.getenv("API_KEY"), help='Value for the X-API-Key header')
    parser.add_argument('--output', help='Where to write the video')
    args = parser.parse_args()

    headers = {"Content-Type": "application/json"}
    if args.api_key:
        headers["X-API-Key"] = args.api_key

    payload = build_payload(args.workflow, args.image, args.audio, args.timeout)

    print(f"Submitting {args.image} to {args.url} (timeout {args.timeout} min)...")
    try:
        # Allow a margin over the generation timeout for upload and download
        response = requests.post(
            f"{args.url}/workflows/image-audio-to-video",
            headers=headers,
            data=json.dumps(payload),
            timeout=args.timeout * 60 + 120,
        )
    except requests.exceptions.RequestException as e:
        print(f"Error contacting API: {e}")
        sys.exit(1)

    if response.status_code != 200:
        print(f"Error response ({response.status_code}): {response.text}")
        sys.exit(1)

    result = response.json()
    output_path = args.output or os.path.join(
        os.path.dirname(os.path.abspath(args.image)), result["fileName"]
    )
    with open(output_path, "wb") as f:
        f.write(base64.b64decode(result["data"]))

    print(f"Saved {result['fileName']} ({result['mimeType']}, {result['fileSize']}) to {output_path}")


if __name__ == "__main__":
    main()

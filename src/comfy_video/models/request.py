import base64
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from comfy_video.config.settings import get_settings
from comfy_video.models.job import ExecutionStatus


class InputType(str, Enum):
    """How the input image reaches the workflow."""
    URL = "url"
    BASE64 = "base64"
    BINARY = "binary"


class BinaryAttachment(BaseModel):
    """A binary item attached by the caller, keyed by property name."""
    data: bytes
    mime_type: str = ""
    file_name: Optional[str] = None


class ComfyUIConnection(BaseModel):
    """Resolved credentials for the backend."""
    api_url: str
    api_key: Optional[str] = None

    @field_validator('api_url')
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip('/')


class GenerationRequest(BaseModel):
    """Model for an image (+ optional audio) to video request.

    ``input_image`` carries the URL or the base64 data depending on
    ``input_type``; it is ignored for binary input.
    """
    workflow: str = Field(..., description="The ComfyUI workflow in API JSON format")
    input_type: InputType = InputType.URL
    input_image: Optional[str] = Field(None, description="URL or base64 data of the input image")
    binary_property_name: str = Field("data", description="Attachment holding the image for binary input")
    audio_binary_property_name: str = Field("", description="Optional attachment holding the audio track")
    timeout: float = Field(
        default_factory=lambda: get_settings().DEFAULT_TIMEOUT_MINUTES,
        gt=0,
        description="Maximum time in minutes to wait for video generation",
    )

    @model_validator(mode='after')
    def check_input_image(self):
        if self.input_type in (InputType.URL, InputType.BASE64) and not self.input_image:
            raise ValueError(f"input_image is required for input_type '{self.input_type.value}'")
        return self


class GenerationResult(BaseModel):
    """The fetched artifact plus the metadata describing it."""
    data: bytes
    mime_type: str
    file_name: str
    file_extension: str
    file_size: str
    file_type: str = "video"
    status: Optional[ExecutionStatus] = None

    def to_response(self) -> Dict[str, Any]:
        return {
            "mimeType": self.mime_type,
            "fileName": self.file_name,
            "fileExtension": self.file_extension,
            "fileSize": self.file_size,
            "fileType": self.file_type,
            "data": base64.b64encode(self.data).decode("utf-8"),
            "status": self.status.model_dump() if self.status else None,
        }

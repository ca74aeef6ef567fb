"""
Backend job models: asset handles, job ids, history records and outputs.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class JobState(str, Enum):
    """States of a submitted job as seen by the poller."""
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED_SUCCESS = "completed_success"
    COMPLETED_ERROR = "completed_error"
    TIMED_OUT = "timed_out"


class MediaAsset(BaseModel):
    """Handle returned by the upload endpoint; ``name`` is what the graph references."""
    name: str
    subfolder: str = ""
    type: str = "input"


class Job(BaseModel):
    prompt_id: str


class ExecutionStatus(BaseModel):
    model_config = ConfigDict(extra="allow")

    completed: bool = False
    status_str: Optional[str] = None
    messages: List[Any] = Field(default_factory=list)

    def error_message(self) -> str:
        """Extract the backend's exception message from the execution log, if any."""
        for message in self.messages:
            if isinstance(message, (list, tuple)) and len(message) == 2 and message[0] == "execution_error":
                details = message[1] or {}
                if isinstance(details, dict):
                    text = details.get("exception_message") or ""
                    node_type = details.get("node_type")
                    if node_type:
                        return f"{node_type}: {text}".strip()
                    return str(text).strip()
        return ""


class OutputFile(BaseModel):
    model_config = ConfigDict(extra="allow")

    filename: str
    subfolder: str = ""
    type: str = ""


class OutputGroup(BaseModel):
    """Outputs one node produced. Only images and animations are of interest."""
    model_config = ConfigDict(extra="allow")

    images: List[OutputFile] = Field(default_factory=list)
    gifs: List[OutputFile] = Field(default_factory=list)

    def media_files(self) -> List[OutputFile]:
        return [*self.images, *self.gifs]


class HistoryEntry(BaseModel):
    """The backend's record of one job, as returned under its id by /history."""
    model_config = ConfigDict(extra="allow")

    status: Optional[ExecutionStatus] = None
    outputs: Dict[str, OutputGroup] = Field(default_factory=dict)


class OutputDescriptor(BaseModel):
    """One media file produced by a job, resolved to a downloadable URL."""
    filename: str
    subfolder: str = ""
    type: str
    url: str

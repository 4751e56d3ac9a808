from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from enum import Enum


class UsageStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class UsageRecord(BaseModel):
    """Audit entry for one image edit request. Written once, never updated."""
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: str = Field(..., description="Request ID returned to the caller")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    model_used: str
    mode: str
    prompt_text: str

    # Input / output sizes
    input_image_bytes: int = Field(0, ge=0, description="Decoded size of the base image")
    mask_image_bytes: int = Field(0, ge=0, description="Decoded size of the mask, 0 when derived")
    input_width: Optional[int] = None
    input_height: Optional[int] = None
    output_image_bytes: int = Field(0, ge=0, description="Total decoded size of generated images")
    output_image_count: int = Field(0, ge=0)

    generation_time_ms: int = Field(0, ge=0)
    status: UsageStatus
    error_message: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        """Serialize for insertion into the usage table."""
        return self.model_dump(mode="json")

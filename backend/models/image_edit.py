from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EditMode(str, Enum):
    INPAINTING = "INPAINTING"
    OUTPAINTING = "OUTPAINTING"
    PRECISE_OUTPAINTING = "PRECISE_OUTPAINTING"

    @property
    def requires_mask(self) -> bool:
        return self is not EditMode.PRECISE_OUTPAINTING

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["EditMode"]:
        """Resolve a client-supplied mode name, or None if it is not recognised."""
        if not raw:
            return None
        key = raw.strip().upper().replace("-", "_").replace(" ", "_")
        return _MODE_ALIASES.get(key)


_MODE_ALIASES = {
    "INPAINTING": EditMode.INPAINTING,
    "INPAINT": EditMode.INPAINTING,
    "OUTPAINTING": EditMode.OUTPAINTING,
    "OUTPAINT": EditMode.OUTPAINTING,
    "PRECISE_OUTPAINTING": EditMode.PRECISE_OUTPAINTING,
    "PRECISE_OUTPAINT": EditMode.PRECISE_OUTPAINTING,
}


class EditPrompt(BaseModel):
    text: str = ""
    mode: str


class ImageEditRequest(BaseModel):
    prompt: EditPrompt
    base_image: str = Field(..., description="Data URI or bare base64 image")
    mask: Optional[str] = Field(None, description="Data URI or bare base64 mask, optional for precise outpainting")
    model: str = "titan"


class ImageEditResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    images: List[str]  # Base64 encoded PNGs
    model_used: str
    request_id: str
    generation_time_ms: int = Field(..., ge=0)


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail

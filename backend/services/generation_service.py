import asyncio
import json
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol

from botocore.exceptions import ClientError, ConnectTimeoutError, ReadTimeoutError

from config.settings import HandlerConfig
from core.errors import GenerationError
from models.image_edit import EditMode

# Bedrock error codes caused by the request itself rather than the service
CLIENT_REJECTION_CODES = {"ValidationException", "AccessDeniedException", "ResourceNotFoundException"}
THROTTLING_CODES = {"ThrottlingException", "ServiceQuotaExceededException", "TooManyRequestsException"}
TIMEOUT_CODES = {"ModelTimeoutException"}


@dataclass(frozen=True)
class TaskParams:
    """Backend parameters for one request, derived from the mode and static config."""
    task_type: str
    outpainting_mode: Optional[str]
    model_id: str
    quality: str
    width: int
    height: int
    cfg_scale: float
    number_of_images: int

    @classmethod
    def for_mode(cls, mode: EditMode, model_id: str, config: HandlerConfig) -> "TaskParams":
        if mode is EditMode.INPAINTING:
            task_type, outpainting_mode = "INPAINTING", None
        elif mode is EditMode.OUTPAINTING:
            task_type, outpainting_mode = "OUTPAINTING", "DEFAULT"
        else:
            task_type, outpainting_mode = "OUTPAINTING", "PRECISE"

        return cls(
            task_type=task_type,
            outpainting_mode=outpainting_mode,
            model_id=model_id,
            quality=config.quality,
            width=config.output_width,
            height=config.output_height,
            cfg_scale=config.cfg_scale,
            number_of_images=config.number_of_images,
        )


class GenerationBackend(Protocol):
    async def generate(self, image: str, mask: str, prompt: str, params: TaskParams) -> List[str]:
        """Return base64 encoded images, or raise on any failure."""
        ...


class BackendResponseError(Exception):
    """The backend answered, but without usable images."""


class TitanGenerationBackend:
    """Amazon Titan Image Generator on Bedrock."""

    def __init__(self, client: Any):
        self.client = client

    @staticmethod
    def build_body(image: str, mask: str, prompt: str, params: TaskParams) -> dict:
        task_inputs = {
            "image": image,
            "text": prompt,
            "maskImage": mask,
        }
        if params.task_type == "INPAINTING":
            body = {"taskType": "INPAINTING", "inPaintingParams": task_inputs}
        else:
            task_inputs["outPaintingMode"] = params.outpainting_mode or "DEFAULT"
            body = {"taskType": "OUTPAINTING", "outPaintingParams": task_inputs}

        body["imageGenerationConfig"] = {
            "numberOfImages": params.number_of_images,
            "quality": params.quality,
            "height": params.height,
            "width": params.width,
            "cfgScale": params.cfg_scale,
        }
        return body

    async def generate(self, image: str, mask: str, prompt: str, params: TaskParams) -> List[str]:
        body = self.build_body(image, mask, prompt, params)

        # boto3 is sync; run in worker thread.
        response = await asyncio.to_thread(
            lambda: self.client.invoke_model(
                modelId=params.model_id,
                body=json.dumps(body),
                accept="application/json",
                contentType="application/json",
            )
        )

        payload = json.loads(response["body"].read())
        if payload.get("error"):
            raise BackendResponseError(str(payload["error"]))

        images = payload.get("images") or []
        if not images:
            raise BackendResponseError("No images received from the model")
        return list(images)


def to_generation_error(exc: BaseException) -> GenerationError:
    """Translate a backend exception into the handler's own error vocabulary."""
    internal = f"{type(exc).__name__}: {exc}"

    if isinstance(exc, GenerationError):
        return exc

    if isinstance(exc, (asyncio.TimeoutError, ReadTimeoutError, ConnectTimeoutError)):
        return GenerationError(
            "GENERATION_TIMEOUT",
            "Image generation timed out",
            504,
            internal_message=internal,
        )

    if isinstance(exc, ClientError):
        error_code = exc.response.get("Error", {}).get("Code", "")
        if error_code in CLIENT_REJECTION_CODES:
            return GenerationError(
                "GENERATION_REJECTED",
                "The image generation service rejected the request",
                400,
                internal_message=internal,
            )
        if error_code in THROTTLING_CODES:
            return GenerationError(
                "GENERATION_THROTTLED",
                "The image generation service is busy, try again later",
                429,
                internal_message=internal,
            )
        if error_code in TIMEOUT_CODES:
            return GenerationError(
                "GENERATION_TIMEOUT",
                "Image generation timed out",
                504,
                internal_message=internal,
            )

    return GenerationError(internal_message=internal)

"""
Image edit request handling.

Validates an edit request, calls the generation backend once, appends one
usage record, and returns the generated images. Configuration, backend and
usage sink are all injected so the handler runs without live infrastructure.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import List, Optional

from config.settings import HandlerConfig
from core.errors import ValidationError
from core.metrics import UsageMetrics
from models.image_edit import EditMode, ImageEditRequest, ImageEditResponse
from models.usage_record import UsageRecord, UsageStatus
from services.generation_service import (
    BackendResponseError,
    GenerationBackend,
    TaskParams,
    to_generation_error,
)
from services.image_service import (
    DecodedImage,
    check_dimensions,
    decode_image,
    decoded_size,
    encode_png_base64,
    mask_from_alpha,
)
from services.usage_service import UsageSink

logger = logging.getLogger(__name__)


@dataclass
class PreparedEdit:
    mode: EditMode
    prompt: str
    model_name: str
    params: TaskParams
    base: DecodedImage
    image_b64: str
    mask_b64: str
    mask_bytes: int


class ImageEditHandler:
    def __init__(self, config: HandlerConfig, backend: GenerationBackend, sink: UsageSink,
                 metrics: Optional[UsageMetrics] = None):
        self.config = config
        self.backend = backend
        self.sink = sink
        self.metrics = metrics or UsageMetrics()

    def prepare(self, request: ImageEditRequest) -> PreparedEdit:
        """
        Validate a request and build the backend payload.

        Raises:
            ValidationError: On any unusable input. Nothing has been sent anywhere yet.
        """
        prompt = (request.prompt.text or "").strip()
        if not prompt:
            raise ValidationError("EMPTY_PROMPT", "The prompt text must not be empty")
        if len(prompt) > self.config.max_prompt_length:
            raise ValidationError(
                "PROMPT_TOO_LONG",
                f"The prompt text must be at most {self.config.max_prompt_length} characters"
            )

        mode = EditMode.parse(request.prompt.mode)
        if mode is None:
            raise ValidationError(
                "INVALID_MODE",
                f"Unknown mode '{request.prompt.mode}'; expected one of "
                f"{', '.join(m.value for m in EditMode)}"
            )

        model_name = (request.model or "").strip().lower()
        model_id = self.config.models.get(model_name)
        if model_id is None:
            raise ValidationError(
                "UNSUPPORTED_MODEL",
                f"Unknown model '{request.model}'; expected one of {', '.join(sorted(self.config.models))}"
            )

        base = decode_image(request.base_image, label="base image", error_code="INVALID_IMAGE")
        check_dimensions(
            base,
            min_width=self.config.min_width,
            min_height=self.config.min_height,
            max_width=self.config.max_width,
            max_height=self.config.max_height,
        )

        if request.mask and request.mask.strip():
            mask = decode_image(request.mask, label="mask", error_code="INVALID_MASK")
            if mask.size != base.size:
                raise ValidationError(
                    "MASK_DIMENSION_MISMATCH",
                    f"The mask is {mask.width}x{mask.height} but the base image is {base.width}x{base.height}"
                )
            mask_image, mask_bytes = mask.image, mask.byte_size
        elif mode.requires_mask:
            raise ValidationError("MASK_REQUIRED", f"A mask is required for {mode.value}")
        else:
            mask_image, mask_bytes = mask_from_alpha(base.image), 0
            if mask_image is None:
                raise ValidationError(
                    "MASK_REQUIRED",
                    "Precise outpainting needs a mask or a base image with transparent areas"
                )

        return PreparedEdit(
            mode=mode,
            prompt=prompt,
            model_name=model_name,
            params=TaskParams.for_mode(mode, model_id, self.config),
            base=base,
            image_b64=encode_png_base64(base.image),
            mask_b64=encode_png_base64(mask_image),
            mask_bytes=mask_bytes,
        )

    async def handle(self, request: ImageEditRequest) -> ImageEditResponse:
        try:
            prepared = self.prepare(request)
        except ValidationError as e:
            self.metrics.increment("requests_rejected")
            logger.warning("Rejected image edit request: %s - %s", e.code, e.message)
            raise

        request_id = str(uuid.uuid4())
        start = time.perf_counter()
        try:
            images = await asyncio.wait_for(
                self.backend.generate(prepared.image_b64, prepared.mask_b64, prepared.prompt, prepared.params),
                timeout=self.config.timeout_seconds,
            )
            if len(images) != prepared.params.number_of_images:
                raise BackendResponseError(
                    f"Expected {prepared.params.number_of_images} images, received {len(images)}"
                )
            if not all(isinstance(image, str) and image for image in images):
                raise BackendResponseError("Backend returned an empty or non-text image")
            generation_time_ms = self._elapsed_ms(start)
            response = ImageEditResponse(
                images=list(images),
                model_used=prepared.model_name,
                request_id=request_id,
                generation_time_ms=generation_time_ms,
            )
        except Exception as exc:
            error = to_generation_error(exc)
            generation_time_ms = self._elapsed_ms(start)
            self.metrics.increment("requests_failed")
            logger.error(
                "Image generation failed for request %s (%s, %s): %s",
                request_id, prepared.mode.value, prepared.model_name, error.internal_message,
                exc_info=exc,
            )
            await self._append_usage(self._usage_record(
                prepared, request_id, generation_time_ms, UsageStatus.FAILURE,
                error_message=error.internal_message,
            ))
            raise error from exc

        await self._append_usage(self._usage_record(
            prepared, request_id, generation_time_ms, UsageStatus.SUCCESS, images=images,
        ))
        self.metrics.increment("requests_succeeded")
        logger.info(
            "Generated %d images for request %s (%s, %s) in %d ms",
            len(images), request_id, prepared.mode.value, prepared.model_name, generation_time_ms,
        )
        return response

    async def _append_usage(self, record: UsageRecord) -> None:
        # A failed write never changes the response; it is logged and counted.
        try:
            await self.sink.append(record)
        except Exception:
            self.metrics.increment("usage_record_failures")
            logger.exception("Failed to write usage record %s", record.id)
            return
        self.metrics.increment("usage_records_written")

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return max(0, int((time.perf_counter() - start) * 1000))

    @staticmethod
    def _usage_record(prepared: PreparedEdit, request_id: str, generation_time_ms: int,
                      status: UsageStatus, images: Optional[List[str]] = None,
                      error_message: Optional[str] = None) -> UsageRecord:
        images = images or []
        return UsageRecord(
            id=request_id,
            model_used=prepared.model_name,
            mode=prepared.mode.value,
            prompt_text=prepared.prompt,
            input_image_bytes=prepared.base.byte_size,
            mask_image_bytes=prepared.mask_bytes,
            input_width=prepared.base.width,
            input_height=prepared.base.height,
            output_image_bytes=sum(decoded_size(image) for image in images),
            output_image_count=len(images),
            generation_time_ms=generation_time_ms,
            status=status,
            error_message=error_message,
        )

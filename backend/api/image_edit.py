import logging
from functools import lru_cache

from fastapi import APIRouter, Depends

from config.settings import HandlerConfig, settings
from core.bedrock import get_bedrock_runtime
from core.errors import ImageEditError
from core.metrics import usage_metrics
from core.supabase import get_supabase
from models.image_edit import ErrorResponse, ImageEditRequest, ImageEditResponse
from services.generation_service import TitanGenerationBackend
from services.image_edit_service import ImageEditHandler
from services.usage_service import SupabaseUsageSink

router = APIRouter(tags=["image-edit"])
logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_handler_config() -> HandlerConfig:
    return HandlerConfig.from_settings(settings)


@lru_cache(maxsize=1)
def get_image_edit_handler() -> ImageEditHandler:
    config = get_handler_config()
    return ImageEditHandler(
        config=config,
        backend=TitanGenerationBackend(get_bedrock_runtime(settings)),
        sink=SupabaseUsageSink(lambda: get_supabase(settings), table=config.usage_table),
        metrics=usage_metrics,
    )


@router.post(
    "/generate",
    response_model=ImageEditResponse,
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def generate(edit_request: ImageEditRequest, handler: ImageEditHandler = Depends(get_image_edit_handler)):
    """Inpaint or outpaint the base image with the hosted generation model"""
    try:
        return await handler.handle(edit_request)
    except ImageEditError:
        raise
    except Exception as e:
        logger.exception("Unexpected error while handling image edit: %s", e)
        raise ImageEditError() from e


@router.get("/generate/health")
async def check_generation_config(config: HandlerConfig = Depends(get_handler_config)):
    """Report configured models and usage-record counters"""
    return {
        "models": sorted(config.models),
        "number_of_images": config.number_of_images,
        "timeout_seconds": config.timeout_seconds,
        "usage": usage_metrics.snapshot(),
    }

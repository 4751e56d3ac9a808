"""
Client factory and wiring tests
"""
from unittest.mock import MagicMock, patch

import pytest

from config.settings import HandlerConfig, Settings
from core.bedrock import BedrockClient
from core.supabase import SupabaseClient


@pytest.fixture(autouse=True)
def reset_clients():
    BedrockClient.reset()
    SupabaseClient.reset()
    yield
    BedrockClient.reset()
    SupabaseClient.reset()


@pytest.mark.unit
class TestBedrockClient:
    def test_creates_runtime_client_once(self):
        settings = Settings(AWS_REGION="eu-west-1", GENERATION_TIMEOUT_SECONDS=30)

        with patch("core.bedrock.boto3.client") as mock_client:
            first = BedrockClient.get_client(settings)
            second = BedrockClient.get_client(settings)

        assert first is second
        mock_client.assert_called_once()
        args, kwargs = mock_client.call_args
        assert args == ("bedrock-runtime",)
        assert kwargs["region_name"] == "eu-west-1"
        assert kwargs["config"].read_timeout == 35


@pytest.mark.unit
class TestSupabaseClient:
    def test_missing_credentials(self):
        settings = Settings(SUPABASE_URL=None, SUPABASE_KEY=None)

        with pytest.raises(ValueError) as exc_info:
            SupabaseClient.get_client(settings)

        assert "SUPABASE_URL" in str(exc_info.value)
        assert "SUPABASE_KEY" in str(exc_info.value)

    def test_creates_client(self):
        settings = Settings(SUPABASE_URL="https://project.supabase.co", SUPABASE_KEY="service-key")

        with patch("core.supabase.create_client") as mock_create:
            mock_create.return_value = MagicMock()
            client = SupabaseClient.get_client(settings)

        mock_create.assert_called_once_with("https://project.supabase.co", "service-key")
        assert client is mock_create.return_value


@pytest.mark.unit
class TestHandlerConfig:
    def test_from_settings(self):
        settings = Settings(
            TITAN_MODEL_ID="amazon.titan-image-generator-v2:0",
            NUMBER_OF_IMAGES=3,
            OUTPUT_WIDTH=1024,
            OUTPUT_HEIGHT=768,
            MAX_IMAGE_SIZE=2048,
            USAGE_TABLE="usage_log",
        )

        config = HandlerConfig.from_settings(settings)

        assert config.models == {"titan": "amazon.titan-image-generator-v2:0"}
        assert config.number_of_images == 3
        assert (config.output_width, config.output_height) == (1024, 768)
        assert (config.max_width, config.max_height) == (2048, 2048)
        assert config.usage_table == "usage_log"


@pytest.mark.unit
def test_default_handler_wiring():
    from api import image_edit
    from services.generation_service import TitanGenerationBackend
    from services.usage_service import SupabaseUsageSink

    image_edit.get_image_edit_handler.cache_clear()
    try:
        with patch("api.image_edit.get_bedrock_runtime") as mock_bedrock, \
                patch("api.image_edit.get_supabase") as mock_supabase:
            handler = image_edit.get_image_edit_handler()
            mock_supabase.assert_not_called()

            assert handler.sink.get_client() is mock_supabase.return_value

        assert isinstance(handler.backend, TitanGenerationBackend)
        assert handler.backend.client is mock_bedrock.return_value
        assert isinstance(handler.sink, SupabaseUsageSink)
        assert handler.sink.table == handler.config.usage_table
    finally:
        image_edit.get_image_edit_handler.cache_clear()

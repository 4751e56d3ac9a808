from typing import Any, Optional

import boto3
from botocore.config import Config

from config.settings import Settings


class BedrockClient:
    _instance: Optional[Any] = None

    @classmethod
    def get_client(cls, settings: Settings) -> Any:
        if cls._instance is None:
            # One request, one invocation: no SDK-level retries.
            cls._instance = boto3.client(
                "bedrock-runtime",
                region_name=settings.AWS_REGION,
                config=Config(
                    read_timeout=int(settings.GENERATION_TIMEOUT_SECONDS) + 5,
                    retries={"max_attempts": 1, "mode": "standard"},
                ),
            )

        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None


def get_bedrock_runtime(settings: Settings) -> Any:
    return BedrockClient.get_client(settings)

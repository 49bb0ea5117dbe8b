"""Image tools - text-to-image generation.

Backed by the Hugging Face inference API. The API token belongs to this
provider alone and is read from settings at construction time.
"""

from typing import Any, Optional

import httpx

from shared.config import ImageSettings
from shared.logging import get_logger
from shared.models import (
    CapabilityDescriptor,
    CapabilityKind,
    FieldSpec,
    ImageContent,
    ToolOutput,
)
from shared.schema import build_object_schema
from capabilities.base import HTTPProvider

logger = get_logger(__name__)


class ImageProvider(HTTPProvider):
    """
    Image tools.

    Provides:
    - generate-image: text prompt to PNG image
    """

    def __init__(
        self,
        settings: ImageSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(
            "image",
            timeout=settings.timeout_seconds,
            transport=transport,
        )
        self._token = settings.token
        self.model = settings.model
        self.inference_url = settings.inference_url.rstrip("/")
        self.num_inference_steps = settings.num_inference_steps
        self._descriptors = [
            CapabilityDescriptor(
                name="generate-image",
                kind=CapabilityKind.TOOL,
                description=(
                    f"Generates an image from a text prompt using the "
                    f"{self.model.split('/')[-1]} model."
                ),
                input_schema=build_object_schema([
                    FieldSpec(
                        name="prompt",
                        type="string",
                        description="Text prompt for the image (English recommended)",
                        min_length=1,
                        max_length=1000,
                    ),
                ]),
                handler=self.generate_image,
            ),
        ]

    @property
    def descriptors(self) -> list[CapabilityDescriptor]:
        return self._descriptors

    async def generate_image(self, params: dict[str, Any]) -> ToolOutput:
        try:
            if not self._token:
                raise RuntimeError("HF_TOKEN environment variable is not set")

            logger.debug("Generating image", model=self.model)
            response = await self._request(
                "POST",
                f"{self.inference_url}/{self.model}",
                "Hugging Face inference",
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Accept": "image/png",
                },
                json={
                    "inputs": params["prompt"],
                    "parameters": {"num_inference_steps": self.num_inference_steps},
                },
            )
            if not response.content:
                raise RuntimeError("Inference API returned an empty image")
        except Exception as e:
            raise RuntimeError(f"Image generation failed: {e}") from e

        return ToolOutput(content=[
            ImageContent(data=response.content, mime_type="image/png"),
        ])


def register_image_capabilities(registry, settings: ImageSettings) -> ImageProvider:
    """Register the image tools."""
    provider = ImageProvider(settings)
    provider.register(registry)
    return provider

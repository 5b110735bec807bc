"""
Preview image generation with OpenAI image edits (gpt-image-1).

Two passes over the customer's photo:
1. Background removal -> transparent PNG of the main subject.
2. Statue synthesis conditioned on the chosen style -> PNG data URI that the
   chat gateway accepts as an image.
"""

import base64
import logging

import httpx
from openai import AsyncOpenAI, OpenAIError

from figurine_bot.constants.states import MiniStyle
from figurine_bot.core.exceptions import PreviewGenerationError
from figurine_bot.services.integrations.http_client import create_httpx_client

logger = logging.getLogger(__name__)

IMAGE_SIZE = "1024x1024"
IMAGE_QUALITY = "high"

BACKGROUND_REMOVAL_PROMPT = (
    "Remove the background completely. Keep only the main subject. Transparent background."
)

STATUE_PROMPT = (
    "Create a premium 3D collectible statue based EXACTLY on the provided subject, "
    "rendered in {style} style. "
    "Physical product appearance, hand-painted 3D print, professional studio lighting, "
    "neutral background, elegant black round base. "
    "Full-body framing, show the entire character from head to feet, "
    "show 100% of the black base, add margin above the head and below the base, "
    "center the character vertically, no cropping. "
    "Do not change facial identity, proportions, or main characteristics."
)

STYLE_DESCRIPTORS = {
    MiniStyle.REALISTIC: "a realistic, lifelike",
    MiniStyle.PIXAR: "a Pixar-like 3D animation",
    MiniStyle.PIXAR_REALISTIC: "a Pixar-like animation with realistic textures and proportions,",
    MiniStyle.CARTOON: "a colorful cartoon",
    MiniStyle.ANIME: "an anime / manga",
}


def _first_b64(response, step: str) -> str:
    data = getattr(response, "data", None) or []
    b64 = getattr(data[0], "b64_json", None) if data else None
    if not b64:
        raise PreviewGenerationError(f"OpenAI returned no image ({step})")
    return b64


class PreviewImageGenerator:
    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-image-1",
        download_timeout_seconds: float = 45.0,
        client: AsyncOpenAI | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.model = model
        self.download_timeout_seconds = download_timeout_seconds
        self._transport = transport
        self._client = client
        if self._client is None and api_key:
            self._client = AsyncOpenAI(api_key=api_key, timeout=download_timeout_seconds)

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def _download(self, image_url: str) -> bytes:
        try:
            async with create_httpx_client(
                self.download_timeout_seconds, transport=self._transport
            ) as client:
                response = await client.get(image_url, follow_redirects=True)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as e:
            raise PreviewGenerationError(f"Could not download customer photo: {e}") from e

    async def remove_background(self, image_url: str) -> bytes:
        """Fetch the photo and return a transparent-background PNG of its subject."""
        source = await self._download(image_url)
        try:
            response = await self._client.images.edit(
                model=self.model,
                image=[("input.png", source, "image/png")],
                prompt=BACKGROUND_REMOVAL_PROMPT,
                size=IMAGE_SIZE,
                quality=IMAGE_QUALITY,
                background="transparent",
            )
        except OpenAIError as e:
            raise PreviewGenerationError(f"Background removal failed: {e}") from e
        return base64.b64decode(_first_b64(response, "remove_background"))

    async def generate_statue(self, subject_png: bytes, style: MiniStyle) -> str:
        """Style-conditioned statue from a subject PNG, as a data URI."""
        prompt = STATUE_PROMPT.format(style=STYLE_DESCRIPTORS.get(style, "a realistic"))
        try:
            response = await self._client.images.edit(
                model=self.model,
                image=[("subject.png", subject_png, "image/png")],
                prompt=prompt,
                size=IMAGE_SIZE,
                quality=IMAGE_QUALITY,
                extra_body={"input_fidelity": "high"},
            )
        except OpenAIError as e:
            raise PreviewGenerationError(f"Statue generation failed: {e}") from e
        return f"data:image/png;base64,{_first_b64(response, 'generate_statue')}"

    async def generate_preview(self, image_url: str, style: MiniStyle) -> str:
        """
        Photo URL -> background removed -> statue preview (data URI).

        Raises:
            PreviewGenerationError: missing API key, download or generation failure
        """
        if not self.enabled:
            logger.warning("OpenAI API key not configured - cannot generate previews")
            raise PreviewGenerationError("OpenAI API key not configured")

        logger.info(f"Generating {style.value} preview from {image_url}")
        subject = await self.remove_background(image_url)
        return await self.generate_statue(subject, style)

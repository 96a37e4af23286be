"""Collaborator interfaces for the remote generation service."""

from __future__ import annotations

from typing import Protocol, Sequence

from restyle_image_api.core.contracts import GenerationParameters, ImageAsset


class PromptSynthesizer(Protocol):
    async def synthesize_prompt(
        self,
        source: ImageAsset,
        references: Sequence[ImageAsset],
        parameters: GenerationParameters,
    ) -> str:
        ...


class ImageSynthesizer(Protocol):
    async def synthesize_image(
        self,
        image: ImageAsset,
        prompt: str,
        ratio: str,
    ) -> ImageAsset:
        ...


class ProviderAdapter(PromptSynthesizer, ImageSynthesizer, Protocol):
    name: str

"""Gemini adapter for prompt synthesis and image synthesis."""

from __future__ import annotations

import logging
import os
from typing import Any, List, Optional, Sequence

from google import genai
from google.genai import types

from restyle_image_api.core.contracts import GenerationParameters, ImageAsset, ProductParameters
from restyle_image_api.core.errors import RemoteError, RestyleError
from restyle_image_api.core.prompts import FALLBACK_PROMPT, build_instruction
from restyle_image_api.core.utils import load_asset


logger = logging.getLogger(__name__)

DEFAULT_PROMPT_MODEL = "gemini-3-flash-preview"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"


def _api_key_from_env() -> Optional[str]:
    return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")


def _image_part(asset: ImageAsset) -> types.Part:
    return types.Part(inline_data=types.Blob(data=asset.data, mime_type=asset.mime_type))


def _extract_status_code(exc: Exception) -> Optional[int]:
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status
    code = getattr(exc, "code", None)
    if isinstance(code, int):
        return code
    return None


def _remote_error(action: str, exc: Exception) -> RemoteError:
    status = _extract_status_code(exc)
    message = str(exc) or f"Gemini {action} failed."
    logger.warning("Gemini %s failed (status=%s): %s", action, status, message)
    return RemoteError(message)


def _first_inline_image(response: Any) -> Optional[ImageAsset]:
    candidates = getattr(response, "candidates", None) or []
    for candidate in candidates[:1]:
        content = getattr(candidate, "content", None)
        parts = getattr(content, "parts", None) or []
        for part in parts:
            inline_data = getattr(part, "inline_data", None)
            if inline_data is None or getattr(inline_data, "data", None) is None:
                continue
            data = inline_data.data
            if isinstance(data, str):
                data = data.encode("latin1")
            return load_asset(data, mime_type=getattr(inline_data, "mime_type", None) or "image/png")
    return None


class GeminiAdapter:
    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        prompt_model: Optional[str] = None,
        image_model: Optional[str] = None,
        client: Any = None,
    ) -> None:
        self.api_key = api_key
        self.prompt_model = prompt_model or DEFAULT_PROMPT_MODEL
        self.image_model = image_model or DEFAULT_IMAGE_MODEL
        self._client = client

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client
        api_key = self.api_key or _api_key_from_env()
        if not api_key:
            raise RemoteError("GEMINI_API_KEY or GOOGLE_API_KEY not set.")
        self._client = genai.Client(api_key=api_key)
        return self._client

    async def synthesize_prompt(
        self,
        source: ImageAsset,
        references: Sequence[ImageAsset],
        parameters: GenerationParameters,
    ) -> str:
        client = self._get_client()
        parts: List[Any] = [_image_part(source)]
        if isinstance(parameters, ProductParameters) and parameters.uses_references:
            parts.extend(_image_part(ref) for ref in references)
        parts.append(types.Part(text=build_instruction(parameters)))
        try:
            response = await client.aio.models.generate_content(
                model=self.prompt_model,
                contents=parts,
            )
        except RestyleError:
            raise
        except Exception as exc:
            raise _remote_error("prompt synthesis", exc) from exc
        text = (getattr(response, "text", None) or "").strip()
        return text or FALLBACK_PROMPT

    async def synthesize_image(self, image: ImageAsset, prompt: str, ratio: str) -> ImageAsset:
        client = self._get_client()
        parts = [_image_part(image), types.Part(text=prompt)]
        config = types.GenerateContentConfig(
            response_modalities=["IMAGE"],
            image_config=types.ImageConfig(aspect_ratio=ratio),
        )
        try:
            response = await client.aio.models.generate_content(
                model=self.image_model,
                contents=parts,
                config=config,
            )
        except RestyleError:
            raise
        except Exception as exc:
            raise _remote_error("image synthesis", exc) from exc
        result = _first_inline_image(response)
        if result is None:
            raise RemoteError("Generation complete but no image data returned.")
        return result

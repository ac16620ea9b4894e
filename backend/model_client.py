import asyncio
import logging
import os

from google import genai

from errors import ModelCallError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"


class GeminiClient:
    """Thin async wrapper over ``client.models.generate_content``."""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL):
        self.model = model
        self._client = genai.Client(api_key=api_key)

    async def generate(self, prompt: str) -> str:
        try:
            response = await asyncio.to_thread(
                self._client.models.generate_content,
                model=self.model,
                contents=prompt,
            )
        except Exception as e:
            logger.error("[GEMINI] Error calling %s: %s", self.model, e)
            raise ModelCallError(str(e)) from e
        return response.text or ""


def build_model_client() -> GeminiClient:
    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        raise RuntimeError("GEMINI_API_KEY not set in .env!")
    return GeminiClient(api_key, os.getenv("GEMINI_MODEL", DEFAULT_MODEL))

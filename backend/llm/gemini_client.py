import time
import logging

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from llm.base_llm import BaseLLM, GenerationOptions, MalformedResponseError, ProviderError

log = logging.getLogger("crossroads.llm.gemini")

DEFAULT_MODEL = "gemini-2.0-flash"


class GeminiClient(BaseLLM):
    """Gemini takes one concatenated prompt rather than role-tagged messages."""

    name = "Google Gemini"

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, timeout: float = 120.0):
        genai.configure(api_key=api_key)
        self.model = model
        self.timeout = timeout
        self._model = genai.GenerativeModel(model)

    async def generate(self, system_prompt: str, user_prompt: str,
                       options: GenerationOptions = GenerationOptions()) -> str:
        prompt = f"{system_prompt}\n\n{user_prompt}"
        config = {
            "temperature": options.temperature,
            "max_output_tokens": options.max_tokens,
        }
        log.info(f"[generate] Calling Gemini  model={self.model}  prompt_len={len(prompt)}")
        t = time.perf_counter()
        try:
            response = await self._model.generate_content_async(
                prompt,
                generation_config=config,
                request_options={"timeout": self.timeout},
            )
        except google_exceptions.GoogleAPICallError as e:
            log.error(f"[generate] Gemini API error response ({e.code}): {e.message}")
            raise ProviderError(self.name, e.code, str(e.message)) from e

        candidates = getattr(response, "candidates", None)
        content = getattr(candidates[0], "content", None) if candidates else None
        parts = getattr(content, "parts", None) if content is not None else None
        if not parts:
            log.error(f"[generate] Unexpected Gemini response structure: {response!r}"[:800])
            raise MalformedResponseError(
                "Unexpected response structure from Gemini API: no candidates[0].content.parts"
            )

        text = parts[0].text
        log.info(f"[generate] Gemini returned {len(text)} chars in {time.perf_counter() - t:.2f}s")
        return text

import time
import logging
from typing import Any, Tuple, Type

from llm.base_llm import BaseLLM, GenerationOptions, MalformedResponseError, ProviderError


class ChatCompletionsLLM(BaseLLM):
    """
    Shared call path for providers exposing an OpenAI-style
    ``chat.completions.create`` endpoint (OpenAI itself, Groq).

    Subclasses set ``client`` to the vendor's async SDK client and name the
    SDK's status / base error classes so failures map onto ProviderError.
    """

    client: Any
    status_error: Type[Exception]
    api_error: Type[Exception]
    log: logging.Logger

    async def generate(self, system_prompt: str, user_prompt: str,
                       options: GenerationOptions = GenerationOptions()) -> str:
        self.log.info(
            f"[generate] Calling {self.name}  model={self.model}  "
            f"prompt_len={len(system_prompt) + len(user_prompt)}"
        )
        t = time.perf_counter()
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=options.temperature,
                max_tokens=options.max_tokens,
            )
        except self.status_error as e:
            status, body = self._describe_status_error(e)
            self.log.error(f"[generate] {self.name} API error response ({status}): {body[:500]}")
            raise ProviderError(self.name, status, body) from e
        except self.api_error as e:
            self.log.error(f"[generate] {self.name} request failed: {e}")
            raise ProviderError(self.name, None, str(e)) from e

        choices = getattr(completion, "choices", None)
        message = choices[0].message if choices else None
        content = getattr(message, "content", None)
        if content is None:
            self.log.error(f"[generate] Unexpected {self.name} response structure: {completion!r}"[:800])
            raise MalformedResponseError(
                f"Unexpected response structure from {self.name} API: no choices[0].message.content"
            )

        self.log.info(f"[generate] {self.name} returned {len(content)} chars in {time.perf_counter() - t:.2f}s")
        return content

    @staticmethod
    def _describe_status_error(e: Exception) -> Tuple[int, str]:
        response = getattr(e, "response", None)
        body = response.text if response is not None else str(e)
        return getattr(e, "status_code", None), body

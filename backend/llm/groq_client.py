import logging

import groq
from groq import AsyncGroq

from llm.chat_completions import ChatCompletionsLLM

DEFAULT_MODEL = "openai/gpt-oss-120b"


class GroqClient(ChatCompletionsLLM):
    name = "Groq"
    status_error = groq.APIStatusError
    api_error = groq.APIError
    log = logging.getLogger("crossroads.llm.groq")

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, timeout: float = 120.0):
        self.client = AsyncGroq(api_key=api_key, timeout=timeout, max_retries=0)
        self.model = model

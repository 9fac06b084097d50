import logging

import openai
from openai import AsyncOpenAI

from llm.chat_completions import ChatCompletionsLLM

DEFAULT_MODEL = "gpt-4o"


class OpenAIClient(ChatCompletionsLLM):
    name = "OpenAI"
    status_error = openai.APIStatusError
    api_error = openai.APIError
    log = logging.getLogger("crossroads.llm.openai")

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, timeout: float = 120.0):
        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self.model = model

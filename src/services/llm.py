import time
import asyncio
import logging
from typing import Any, List, Optional

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_ollama import ChatOllama
from langchain_openai import ChatOpenAI

logger = logging.getLogger(__name__)


def create_chat_model(
    provider: str,
    model: str,
    *,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    temperature: float = 0.7,
) -> BaseChatModel:
    """Build the LangChain chat model for a configured provider."""
    if provider == "google":
        return ChatGoogleGenerativeAI(
            model=model,
            google_api_key=api_key,
            temperature=temperature,
        )

    elif provider == "openai":
        return ChatOpenAI(model=model, api_key=api_key, temperature=temperature)

    elif provider == "anthropic":
        return ChatAnthropic(model=model, api_key=api_key, temperature=temperature)

    elif provider == "ollama":
        base_url = (base_url or "http://localhost:11434").rstrip("/")
        # ChatOllama uses Ollama's native API, not the OpenAI-compatible /v1 endpoint
        if base_url.endswith("/v1"):
            base_url = base_url[:-3]
        return ChatOllama(
            base_url=base_url,
            model=model,
            temperature=temperature,
            num_ctx=8192,
        )

    else:
        raise ValueError(f"Unknown LLM provider: {provider}")


def _content_text(content: Any) -> str:
    """Flatten a message content payload (str or list of parts) to text."""
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


class LLMClient:
    """
    LangChain-based chat client with retry logic for transient failures.
    """

    def __init__(
        self,
        chat_model: BaseChatModel,
        *,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        timeout: float = 120.0,
    ):
        self.llm = chat_model
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout

    @classmethod
    def from_config(
        cls,
        provider: str,
        model: str,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        **kwargs,
    ) -> "LLMClient":
        chat_model = create_chat_model(provider, model, api_key=api_key, base_url=base_url)
        return cls(chat_model, **kwargs)

    async def _invoke_with_retry(self, messages: List[BaseMessage]) -> Any:
        """
        Invoke LLM with retry logic for timeouts and connection failures.
        """
        last_exception = None

        for attempt in range(1, self.max_retries + 1):
            try:
                response = await asyncio.wait_for(
                    self.llm.ainvoke(messages),
                    timeout=self.timeout,
                )
                return response

            except asyncio.TimeoutError:
                last_exception = TimeoutError(
                    f"Request timed out after {self.timeout}s"
                )
                logger.warning(
                    f"Attempt {attempt}/{self.max_retries}: Timeout, retrying..."
                )

            except Exception as e:
                last_exception = e
                error_msg = str(e)

                # Check for connection errors
                if "connection" in error_msg.lower() or "connect" in error_msg.lower():
                    logger.warning(
                        f"Attempt {attempt}/{self.max_retries}: Connection error - {error_msg}"
                    )
                else:
                    # For non-connection errors, don't retry
                    raise

            if attempt < self.max_retries:
                await asyncio.sleep(self.retry_delay * attempt)

        raise last_exception or Exception("All LLM attempts failed")

    async def generate(self, prompt: str, system: Optional[str] = None) -> str:
        """
        Send a prompt (with optional system instruction) and return the text.
        """
        messages: List[BaseMessage] = []
        if system:
            messages.append(SystemMessage(content=system))
        messages.append(HumanMessage(content=prompt))

        start = time.time()
        response = await self._invoke_with_retry(messages)
        latency_ms = int((time.time() - start) * 1000)
        logger.debug(f"LLM response received (latency: {latency_ms}ms)")

        return _content_text(response.content)

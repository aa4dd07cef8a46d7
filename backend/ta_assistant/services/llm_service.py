"""
LLM Service - Unified interface for the supported LLM providers.

This service is STATELESS. It does not store conversation history.
Its only job is to execute a call to an LLM with a given context.
"""

import base64
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_ollama import ChatOllama
from langchain_openai import ChatOpenAI
from pydantic import SecretStr

from ta_assistant.core.config import settings
from ta_assistant.models.message import Message


logger = logging.getLogger(__name__)

@dataclass
class LLMResponse:
    """
    Structured response from LLM.
    """
    content: str
    model: str
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None

    @property
    def has_token_info(self) -> bool:
        """Check if token usage info is available."""
        return self.total_tokens is not None


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    OLLAMA = "ollama"


def _content_to_text(content: Any) -> str:
    """Chat models may answer with a list of content blocks."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content or "")


def _strip_code_fences(content: str) -> str:
    # LLMs sometimes wrap JSON in markdown fences: ```json ... ```
    content = content.strip()
    if content.startswith("```"):
        lines = content.split("\n")
        content = "\n".join(lines[1:-1])
    return content


class LLMService:
    """Stateless service for interacting with the configured LLM provider."""
    def __init__(
            self,
            provider: LLMProvider = LLMProvider.OPENAI,
            model: Optional[str] = None,
            temperature: Optional[float] = None,
            api_key: Optional[SecretStr | str] = None,
            base_url: Optional[str] = None
    ):
        self.provider = LLMProvider(provider)
        self.model = model or self._get_default_model(self.provider)
        self.temperature = temperature if temperature is not None else settings.LLM_TEMPERATURE
        self.api_key = api_key or self._get_default_api_key(self.provider)
        self.base_url = base_url or self._get_default_base_url(self.provider)

        self.llm = self._initialize_provider()
        logger.info(
            f"LLMService initialized: provider={self.provider.value}, "
            f"model={self.model}, temperature={self.temperature}"
        )

    def _get_default_model(self, provider: LLMProvider) -> str:
        defaults = {
            LLMProvider.OPENAI: settings.OPENAI_MODEL,
            LLMProvider.OLLAMA: settings.OLLAMA_MODEL,
        }
        return defaults.get(provider, "")

    def _get_default_api_key(self, provider: LLMProvider) -> str:
        defaults = {
            LLMProvider.OPENAI: settings.OPENAI_API_KEY,
        }
        return defaults.get(provider, "")

    def _get_default_base_url(self, provider: LLMProvider) -> Optional[str]:
        defaults = {
            LLMProvider.OLLAMA: settings.OLLAMA_BASE_URL,
        }
        return defaults.get(provider)

    def _initialize_provider(self):
        if self.provider == LLMProvider.OPENAI:
            if not self.api_key:
                raise ValueError("OpenAI requires an API key")

            return ChatOpenAI(
                model=self.model,
                api_key=self.api_key,
                temperature=self.temperature,
                max_tokens=settings.LLM_MAX_TOKENS,
                timeout=settings.LLM_TIMEOUT,
            )

        elif self.provider == LLMProvider.OLLAMA:
            return ChatOllama(
                model=self.model,
                base_url=self.base_url,
                temperature=self.temperature,
                num_ctx=settings.LLM_MAX_TOKENS,
            )

        else:
            raise ValueError(f"Unsupported provider: {self.provider}")

    def _to_langchain_messages(self, messages: List[Message]) -> List[BaseMessage]:
        """Convert our Message model to LangChain's message types."""
        lc_messages = []
        for msg in messages:
            if msg.sender.lower() == "user":
                lc_messages.append(HumanMessage(content=msg.content))
            elif msg.sender.lower() == "assistant":
                lc_messages.append(AIMessage(content=msg.content))
            elif msg.sender.lower() == "system":
                lc_messages.append(SystemMessage(content=msg.content))
        return lc_messages

    def _to_response(self, response: BaseMessage) -> LLMResponse:
        content = _content_to_text(response.content)
        token_usage = getattr(response, 'response_metadata', {}).get('token_usage', {}) or {}
        return LLMResponse(
            content=content,
            model=self.model,
            prompt_tokens=token_usage.get('prompt_tokens'),
            completion_tokens=token_usage.get('completion_tokens'),
            total_tokens=token_usage.get('total_tokens')
        )

    async def agenerate(
            self,
            messages: Optional[List[Message]],
            system_prompt: Optional[str] = None,
            temperature: Optional[float] = None,
    ) -> LLMResponse:
        """
        Generate a response from the LLM based on a list of messages.

        Args:
            messages: The history of messages in the conversation.
            system_prompt: System instructions (optional, prepended to messages).
            temperature: Override default temperature.

        Returns:
            LLMResponse with the generated text.
        """
        try:
            lc_messages = self._to_langchain_messages(messages or [])
            if system_prompt:
                lc_messages.insert(0, SystemMessage(content=system_prompt))

            llm = self.llm
            if temperature is not None:
                llm = self.llm.bind(temperature=temperature)

            logger.debug(f"Generating response for {len(lc_messages)} messages...")
            response = await llm.ainvoke(lc_messages)
            result = self._to_response(response)
            logger.debug(f"Response generated: {len(result.content)} chars")
            return result

        except Exception as e:
            logger.error(f"LLM generation failed: {e}")
            raise

    async def agenerate_structured(
            self,
            prompt: str,
            schema: Optional[Dict[str, Any]] = None,
            system_prompt: Optional[str] = None,
            temperature: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Generate structured output (JSON).

        Args:
            prompt: Instructions; may already describe the expected JSON
            schema: Expected output structure, appended to the system prompt
            system_prompt: Optional system instructions

        Returns:
            Parsed JSON dictionary

        Raises:
            ValueError: If the model did not return valid JSON
        """
        full_system = system_prompt or ""
        if schema is not None:
            schema_str = json.dumps(schema, indent=2, ensure_ascii=False)
            full_system = (
                f"{full_system}\n\nReturn ONLY valid JSON following this schema:\n{schema_str}"
            ).strip()

        messages = [Message.create(sender="user", content=prompt)]
        response = await self.agenerate(
            messages=messages,
            system_prompt=full_system or None,
            temperature=temperature,
        )

        try:
            return json.loads(_strip_code_fences(response.content))
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse JSON response: {e}")
            logger.debug(f"Raw response: {response.content}")
            raise ValueError(f"LLM did not return valid JSON: {e}")

    async def arecognize_image(
            self,
            image: bytes,
            instruction: str,
            text: str,
            mime_type: str = "image/png",
            temperature: float = 0,
    ) -> LLMResponse:
        """
        Ask a multimodal model about one image.

        Args:
            image: Encoded image bytes
            instruction: System instructions
            text: User text sent alongside the image
            mime_type: Image MIME type
            temperature: Sampling temperature (0 for faithful transcription)

        Returns:
            LLMResponse with the model's answer
        """
        encoded = base64.b64encode(image).decode("ascii")
        lc_messages = [
            SystemMessage(content=instruction),
            HumanMessage(content=[
                {"type": "text", "text": text},
                {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}},
            ]),
        ]
        response = await self.llm.bind(temperature=temperature).ainvoke(lc_messages)
        return self._to_response(response)

    def validate_connection(self) -> bool:
        """
        Test if the LLM is accessible and responsive.
        """
        try:
            logger.debug("Validating LLM connection...")
            test_messages = [
                SystemMessage(content="Respond with only the word 'Hi'"),
                HumanMessage(content="Hello")
            ]
            response = self.llm.invoke(test_messages)

            content = _content_to_text(response.content)
            is_valid = len(content) > 0
            if is_valid:
                logger.info("LLM connection validation successful.")
            else:
                logger.warning("LLM validation failed: received empty or invalid response.")
            return is_valid

        except Exception as e:
            logger.error(f"LLM validation failed with exception: {e}", exc_info=True)
            return False


# ==================== Module-level instance ====================

_llm_service_instance: Optional[LLMService] = None

def get_llm_service(
        provider: Optional[LLMProvider] = None,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
) -> LLMService:
    """
    Get a configured instance of the LLM service.
    A non-default provider, model or key always creates a new instance.
    The default configuration is cached as a singleton.
    """
    global _llm_service_instance

    llm_provider = LLMProvider(provider or settings.LLM_PROVIDER)
    default_provider = LLMProvider(settings.LLM_PROVIDER)

    if llm_provider != default_provider or (model and model != settings.default_model) or api_key:
        logger.info(f"Creating new LLMService instance for provider={llm_provider.value}, model={model}")
        return LLMService(provider=llm_provider, model=model, api_key=api_key)

    if _llm_service_instance is None:
        logger.info("Creating singleton LLMService instance for default provider.")
        _llm_service_instance = LLMService(provider=default_provider)

    return _llm_service_instance

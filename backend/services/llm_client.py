"""Answer generators for the OpenAI, Anthropic and Groq chat APIs."""
import re
import time
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Protocol, Tuple, Type

from anthropic import Anthropic
from anthropic import AuthenticationError as AnthropicAuthenticationError
from anthropic import APITimeoutError as AnthropicTimeoutError
from groq import Groq
from groq import AuthenticationError as GroqAuthenticationError
from groq import APITimeoutError as GroqTimeoutError
from openai import OpenAI
from openai import AuthenticationError as OpenAIAuthenticationError
from openai import APITimeoutError as OpenAITimeoutError

from models.provider import ProviderConfig, ProviderKind
from services.errors import (
    AuthenticationError,
    ContextLengthExceededError,
    GenerationError,
    QAError,
)
from config import (
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_GROQ_MODEL,
    DEFAULT_OPENAI_MODEL,
    MAX_OUTPUT_TOKENS,
    REQUEST_TIMEOUT,
)

logger = logging.getLogger(__name__)

# "This model's maximum context length is 8192 tokens. However, your messages
# resulted in 16614 tokens." (OpenAI and OpenAI-compatible APIs)
_MAX_CONTEXT_PATTERN = re.compile(
    r"maximum context length is (\d+) tokens.*?resulted in (\d+) tokens",
    re.IGNORECASE | re.DOTALL,
)
# "prompt is too long: 215000 tokens > 200000 maximum" (Anthropic)
_PROMPT_TOO_LONG_PATTERN = re.compile(
    r"prompt is too long:\s*(\d+) tokens\s*>\s*(\d+) maximum",
    re.IGNORECASE,
)

_AUTHENTICATION_ERRORS = (
    OpenAIAuthenticationError,
    AnthropicAuthenticationError,
    GroqAuthenticationError,
)
_TIMEOUT_ERRORS = (OpenAITimeoutError, AnthropicTimeoutError, GroqTimeoutError)


@dataclass
class LLMResponse:
    """Response from LLM generation."""
    text: str
    tokens_input: int
    tokens_output: int
    latency_ms: int
    model_used: str


class AnswerGenerator(Protocol):
    """Turns a grounding prompt into answer text."""

    model: str

    def generate(self, prompt: str) -> LLMResponse:
        ...


def parse_context_length_error(message: str) -> Optional[ContextLengthExceededError]:
    """
    Recognise a context window overflow in a provider error message.

    Returns:
        ContextLengthExceededError carrying the token counts, or None
    """
    match = _MAX_CONTEXT_PATTERN.search(message)
    if match:
        return ContextLengthExceededError(
            max_tokens=int(match.group(1)),
            used_tokens=int(match.group(2))
        )

    match = _PROMPT_TOO_LONG_PATTERN.search(message)
    if match:
        return ContextLengthExceededError(
            max_tokens=int(match.group(2)),
            used_tokens=int(match.group(1))
        )

    return None


def map_generation_error(error: Exception, provider: str) -> QAError:
    """
    Translate a backend exception into the pipeline's error taxonomy.

    Context overflow is checked first since providers report it as an
    ordinary bad request.
    """
    if isinstance(error, QAError):
        return error

    message = str(error)
    context_error = parse_context_length_error(message)
    if context_error is not None:
        return context_error

    status = getattr(error, "status_code", None)
    if isinstance(error, _AUTHENTICATION_ERRORS) or status == 401:
        return AuthenticationError(provider=provider)

    if isinstance(error, _TIMEOUT_ERRORS):
        return GenerationError(f"{provider} request timed out. Please try again.")

    return GenerationError(f"{provider} API error: {message}", status=status)


def _raise_generation_error(error: Exception, provider: str, model: str, start_time: float) -> None:
    latency_ms = int((time.time() - start_time) * 1000)
    mapped = map_generation_error(error, provider)
    logger.error(
        f"Generation failed: provider={provider}, model={model}, latency={latency_ms}ms, error={error}",
        exc_info=True,
        extra={"error_code": mapped.code, "error_details": mapped.details}
    )
    raise mapped from error


def _chat_completion(client, model: str, prompt: str, max_tokens: int) -> Tuple[str, int, int]:
    """Call an OpenAI-compatible chat completions endpoint."""
    response = client.chat.completions.create(
        model=model,
        messages=[
            {
                "role": "user",
                "content": prompt
            }
        ],
        max_tokens=max_tokens,
        temperature=0
    )

    text = response.choices[0].message.content
    usage = response.usage
    tokens_input = usage.prompt_tokens if usage else 0
    tokens_output = usage.completion_tokens if usage else 0
    return text, tokens_input, tokens_output


def _build_response(text: Optional[str], tokens_input: int, tokens_output: int, model: str, provider: str, start_time: float) -> LLMResponse:
    if not text or not text.strip():
        raise GenerationError(f"{provider} returned an empty response")

    latency_ms = int((time.time() - start_time) * 1000)
    logger.info(
        f"Generated response: provider={provider}, model={model}, "
        f"input_tokens={tokens_input}, output_tokens={tokens_output}, "
        f"latency={latency_ms}ms"
    )

    return LLMResponse(
        text=text,
        tokens_input=tokens_input,
        tokens_output=tokens_output,
        latency_ms=latency_ms,
        model_used=model
    )


class OpenAIGenerator:
    """Answer generator for OpenAI chat models."""

    provider = ProviderKind.OPENAI.value

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        max_tokens: int = MAX_OUTPUT_TOKENS,
        timeout: float = REQUEST_TIMEOUT
    ):
        """
        Initialize the generator.

        Args:
            api_key: OpenAI API key
            model: Chat model id, defaults to DEFAULT_OPENAI_MODEL
            max_tokens: Maximum tokens to generate
            timeout: Request timeout in seconds

        Raises:
            AuthenticationError: If api_key is empty
        """
        if not api_key:
            raise AuthenticationError("An OpenAI API key is required", provider=self.provider)

        self.model = model or DEFAULT_OPENAI_MODEL
        self.max_tokens = max_tokens
        # Nothing is retried automatically; failures go straight to the caller
        self.client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def generate(self, prompt: str) -> LLMResponse:
        """
        Generate an answer at temperature 0.

        Raises:
            ContextLengthExceededError: If the prompt overflows the model
            AuthenticationError: If the key is rejected
            GenerationError: For any other failure
        """
        start_time = time.time()
        logger.debug(f"Generating response with model: {self.model}")

        try:
            text, tokens_input, tokens_output = _chat_completion(
                self.client, self.model, prompt, self.max_tokens
            )
        except Exception as e:
            _raise_generation_error(e, self.provider, self.model, start_time)

        return _build_response(text, tokens_input, tokens_output, self.model, self.provider, start_time)


class GroqGenerator:
    """Answer generator for Groq-hosted open models."""

    provider = ProviderKind.GROQ.value

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        max_tokens: int = MAX_OUTPUT_TOKENS,
        timeout: float = REQUEST_TIMEOUT
    ):
        if not api_key:
            raise AuthenticationError("A Groq API key is required", provider=self.provider)

        self.model = model or DEFAULT_GROQ_MODEL
        self.max_tokens = max_tokens
        self.client = Groq(api_key=api_key, timeout=timeout, max_retries=0)

    def generate(self, prompt: str) -> LLMResponse:
        start_time = time.time()
        logger.debug(f"Generating response with model: {self.model}")

        try:
            text, tokens_input, tokens_output = _chat_completion(
                self.client, self.model, prompt, self.max_tokens
            )
        except Exception as e:
            _raise_generation_error(e, self.provider, self.model, start_time)

        return _build_response(text, tokens_input, tokens_output, self.model, self.provider, start_time)


class AnthropicGenerator:
    """Answer generator for Anthropic Claude models."""

    provider = ProviderKind.ANTHROPIC.value

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        max_tokens: int = MAX_OUTPUT_TOKENS,
        timeout: float = REQUEST_TIMEOUT
    ):
        if not api_key:
            raise AuthenticationError("An Anthropic API key is required", provider=self.provider)

        self.model = model or DEFAULT_ANTHROPIC_MODEL
        self.max_tokens = max_tokens
        self.client = Anthropic(api_key=api_key, timeout=timeout, max_retries=0)

    def generate(self, prompt: str) -> LLMResponse:
        start_time = time.time()
        logger.debug(f"Generating response with model: {self.model}")

        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=0,
                messages=[
                    {
                        "role": "user",
                        "content": prompt
                    }
                ]
            )
            text = "".join(
                block.text for block in response.content
                if getattr(block, "type", None) == "text"
            )
            tokens_input = response.usage.input_tokens
            tokens_output = response.usage.output_tokens
        except Exception as e:
            _raise_generation_error(e, self.provider, self.model, start_time)

        return _build_response(text, tokens_input, tokens_output, self.model, self.provider, start_time)


GENERATOR_BACKENDS: Dict[ProviderKind, Type] = {
    ProviderKind.OPENAI: OpenAIGenerator,
    ProviderKind.ANTHROPIC: AnthropicGenerator,
    ProviderKind.GROQ: GroqGenerator,
}


def build_generator(config: ProviderConfig) -> AnswerGenerator:
    """Create the answer generator selected by config.kind."""
    backend = GENERATOR_BACKENDS[ProviderKind(config.kind)]
    return backend(api_key=config.api_key, model=config.model)

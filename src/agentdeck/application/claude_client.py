"""Claude API client used as the model invoker for executions."""

from anthropic import AsyncAnthropic

from agentdeck.domain.ports.model_invoker import ModelInvoker
from agentdeck.infrastructure.exceptions import APIKeyInvalidError, ModelInvocationError
from agentdeck.infrastructure.logger import get_logger

logger = get_logger(__name__)


class ClaudeClient(ModelInvoker):
    """Wrapper for Anthropic Claude API."""

    def __init__(
        self,
        api_key: str | None,
        model: str = "claude-sonnet-4-5-20250929",
        max_tokens: int = 8000,
        temperature: float = 0.7,
        max_retries: int = 2,
        timeout: float = 600.0,
    ):
        """Initialize Claude client.

        Args:
            api_key: Anthropic API key
            model: Model to use for every request
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature
            max_retries: SDK retry attempts for transient errors
            timeout: Per-request timeout in seconds

        Raises:
            APIKeyInvalidError: If no API key is provided
        """
        if not api_key or not api_key.strip():
            raise APIKeyInvalidError("ANTHROPIC_API_KEY is not configured")

        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_retries = max_retries
        self.timeout = timeout
        self.async_client = AsyncAnthropic(
            api_key=api_key, max_retries=max_retries, timeout=timeout
        )

        logger.debug("claude_client_initialized", model=model, max_retries=max_retries)

    async def generate(self, prompt: str) -> str:
        """Send a single-turn prompt and return the joined text blocks.

        Args:
            prompt: Fully composed prompt text

        Returns:
            Generated text

        Raises:
            ModelInvocationError: On SDK failure or an empty response
        """
        try:
            logger.info("executing_claude_request", model=self.model, prompt_chars=len(prompt))

            response = await self.async_client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[{"role": "user", "content": prompt}],
            )

            text = "\n".join(
                block.text for block in response.content if getattr(block, "type", None) == "text"
            )
            if not text.strip():
                raise ModelInvocationError("Claude API returned an empty response.")

            logger.info(
                "claude_request_completed",
                stop_reason=response.stop_reason,
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
            )
            return text

        except Exception as e:
            logger.error("claude_request_failed", error=str(e))
            raise ModelInvocationError(f"Claude execution failed: {e}") from e


class UnconfiguredClient(ModelInvoker):
    """Stand-in invoker used when no API key is available at startup.

    Every call fails, so executions end as ``failed`` with the reason.
    """

    def __init__(self, reason: str):
        self.reason = reason

    async def generate(self, prompt: str) -> str:
        raise ModelInvocationError(f"Claude execution failed: {self.reason}")

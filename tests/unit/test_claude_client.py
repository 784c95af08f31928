"""Unit tests for ClaudeClient."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from agentdeck.application.claude_client import ClaudeClient, UnconfiguredClient
from agentdeck.infrastructure.exceptions import APIKeyInvalidError, ModelInvocationError


def _response(*blocks: SimpleNamespace) -> SimpleNamespace:
    return SimpleNamespace(
        content=list(blocks),
        stop_reason="end_turn",
        usage=SimpleNamespace(input_tokens=12, output_tokens=34),
    )


def _text(text: str) -> SimpleNamespace:
    return SimpleNamespace(type="text", text=text)


class TestClaudeClientInit:
    """Test client construction."""

    @pytest.mark.parametrize("api_key", [None, "", "   "])
    def test_missing_api_key_raises(self, api_key: str | None) -> None:
        """Test that a blank key is rejected before any request."""
        with pytest.raises(APIKeyInvalidError, match="ANTHROPIC_API_KEY is not configured"):
            ClaudeClient(api_key=api_key)

    def test_settings_are_kept(self) -> None:
        """Test that model settings are stored on the client."""
        client = ClaudeClient(api_key="sk-ant-test", model="claude-x", max_tokens=100)

        assert client.model == "claude-x"
        assert client.max_tokens == 100
        assert client.async_client is not None


class TestClaudeClientGenerate:
    """Test generate() against a mocked SDK."""

    @pytest.mark.asyncio
    async def test_joins_text_blocks(self) -> None:
        """Test that only text blocks are returned, newline-joined."""
        client = ClaudeClient(api_key="sk-ant-test", model="claude-x", temperature=0.7)
        create = AsyncMock(
            return_value=_response(
                _text("Part one"),
                SimpleNamespace(type="tool_use", id="t1"),
                _text("Part two"),
            )
        )
        client.async_client.messages.create = create  # type: ignore[method-assign]

        text = await client.generate("Do the tasks")

        assert text == "Part one\nPart two"
        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "claude-x"
        assert kwargs["temperature"] == 0.7
        assert kwargs["messages"] == [{"role": "user", "content": "Do the tasks"}]

    @pytest.mark.asyncio
    async def test_empty_response_is_an_error(self) -> None:
        """Test that a response without text fails the call."""
        client = ClaudeClient(api_key="sk-ant-test")
        client.async_client.messages.create = AsyncMock(  # type: ignore[method-assign]
            return_value=_response(_text("   "))
        )

        with pytest.raises(ModelInvocationError, match="empty response"):
            await client.generate("Do the tasks")

    @pytest.mark.asyncio
    async def test_sdk_error_is_wrapped(self) -> None:
        """Test that SDK failures surface as ModelInvocationError."""
        client = ClaudeClient(api_key="sk-ant-test")
        client.async_client.messages.create = AsyncMock(  # type: ignore[method-assign]
            side_effect=RuntimeError("Error code: 529 - overloaded")
        )

        with pytest.raises(ModelInvocationError) as exc_info:
            await client.generate("Do the tasks")

        assert str(exc_info.value) == "Claude execution failed: Error code: 529 - overloaded"
        assert isinstance(exc_info.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_unconfigured_client_always_fails() -> None:
    client = UnconfiguredClient("ANTHROPIC_API_KEY is not configured")

    with pytest.raises(ModelInvocationError, match="ANTHROPIC_API_KEY is not configured"):
        await client.generate("anything")

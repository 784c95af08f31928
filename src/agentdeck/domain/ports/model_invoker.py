"""Abstract model invoker used by the execution lifecycle."""

from abc import ABC, abstractmethod


class ModelInvoker(ABC):
    """Contract for sending one prompt to a hosted language model.

    Implementations must be coroutine-based so a timeout can cancel the
    pending call.
    """

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Send a prompt and return the generated text.

        Args:
            prompt: Fully composed prompt text

        Returns:
            Generated text

        Raises:
            ModelInvocationError: If the call fails or yields no text
        """
        pass

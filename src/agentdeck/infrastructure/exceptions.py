"""Custom exception hierarchy for agentdeck."""


class AgentDeckError(Exception):
    """Base exception for all agentdeck errors."""

    pass


class AgentNotFoundError(AgentDeckError):
    """No agent exists with the requested id."""

    def __init__(self, agent_id: str):
        super().__init__(f"Agent not found: {agent_id}")
        self.agent_id = agent_id


class ExecutionNotFoundError(AgentDeckError):
    """No execution exists with the requested id."""

    def __init__(self, execution_id: str):
        super().__init__(f"Execution not found: {execution_id}")
        self.execution_id = execution_id


class NoValidTasksError(AgentDeckError):
    """Agent has no non-blank tasks to execute.

    Raised before any execution record is created.
    """

    def __init__(self, agent_id: str, message: str = "Agent has no valid tasks to execute"):
        super().__init__(message)
        self.agent_id = agent_id


class InvalidLimitError(AgentDeckError):
    """List limit outside the accepted range."""

    def __init__(self, limit: int, minimum: int = 1, maximum: int = 1000):
        super().__init__(f"Limit must be a positive number between {minimum} and {maximum}")
        self.limit = limit
        self.minimum = minimum
        self.maximum = maximum


class ExecutionNotCancellableError(AgentDeckError):
    """Execution is not in flight in this process."""

    def __init__(self, execution_id: str):
        super().__init__("Execution not found or already completed")
        self.execution_id = execution_id


class CapacityExceededError(AgentDeckError):
    """Too many executions are in flight."""

    def __init__(self, active: int, maximum: int):
        super().__init__(
            f"Too many concurrent executions ({active}/{maximum}), try again later"
        )
        self.active = active
        self.maximum = maximum


class ModelInvocationError(AgentDeckError):
    """The hosted model call failed or returned nothing usable."""

    pass


class AuthenticationError(AgentDeckError):
    """Base authentication error with optional remediation guidance.

    Attributes:
        message: Error message describing what went wrong
        remediation: Optional guidance on how to fix the issue
    """

    def __init__(self, message: str, remediation: str | None = None):
        """Initialize authentication error.

        Args:
            message: Error message
            remediation: Optional remediation guidance
        """
        super().__init__(message)
        self.remediation = remediation

    def __str__(self) -> str:
        """Return formatted error message with remediation if available."""
        if self.remediation:
            return f"{self.args[0]}\n\nRemediation: {self.remediation}"
        return str(self.args[0])


class APIKeyInvalidError(AuthenticationError):
    """API key is invalid, malformed, or not configured."""

    def __init__(self, message: str = "API key invalid or malformed"):
        super().__init__(
            message=message,
            remediation=(
                "Set ANTHROPIC_API_KEY, store it with `agentdeck config set-key`, "
                "or generate a new key at console.anthropic.com"
            ),
        )

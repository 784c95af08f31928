"""Turn background execution failures into the text stored on the record."""

GENERIC_FAILURE_MESSAGE = "Execution failed"

_CREDENTIAL_PATTERNS: tuple[str, ...] = (
    "api key",
    "api_key",
    "authentication",
    "unauthorized",
    "401",
    "permission",
)
_QUOTA_PATTERNS: tuple[str, ...] = (
    "quota",
    "rate limit",
    "rate_limit",
    "429",
    "credit",
    "billing",
    "overloaded",
)
_MODEL_PATTERNS: tuple[str, ...] = (
    "not found",
    "not_found",
    "404",
    "invalid",
    "unknown",
)

CREDENTIAL_HINT = " (hint: check that ANTHROPIC_API_KEY is set and valid)"
QUOTA_HINT = " (hint: API quota or rate limit reached, try again later)"
MODEL_HINT = " (hint: check the configured model name)"


def _hint_for(message: str) -> str | None:
    lowered = message.lower()
    if any(pattern in lowered for pattern in _CREDENTIAL_PATTERNS):
        return CREDENTIAL_HINT
    if any(pattern in lowered for pattern in _QUOTA_PATTERNS):
        return QUOTA_HINT
    if "model" in lowered and any(pattern in lowered for pattern in _MODEL_PATTERNS):
        return MODEL_HINT
    return None


def classify_execution_error(error: BaseException | None) -> str:
    """Build the failure text recorded for an execution.

    The error's own message is kept verbatim; at most one hint is appended
    when it matches a known credential, quota or model pattern. Errors with
    no message fall back to ``"Execution failed"``.

    Args:
        error: Exception raised by the model call, or None

    Returns:
        Message to store as the execution result
    """
    message = str(error).strip() if error is not None else ""
    if not message:
        return GENERIC_FAILURE_MESSAGE

    hint = _hint_for(message)
    if hint is None:
        return message
    return message + hint

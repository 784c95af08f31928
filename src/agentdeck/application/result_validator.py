"""Size checks applied to model output before it is stored."""

from dataclasses import dataclass

from agentdeck.infrastructure.logger import get_logger

logger = get_logger(__name__)

MAX_RESULT_BYTES = 1024 * 1024
MAX_RESULT_CHARS = 100_000

SIZE_TRUNCATION_MARKER = "\n[TRUNCATED: Result exceeded size limit]"
LENGTH_TRUNCATION_MARKER = "\n[TRUNCATED: Result exceeded length limit]"


@dataclass
class ValidationResult:
    """Outcome of validating a model result."""

    data: str
    warning: str | None = None
    truncated: bool = False


def validate_and_truncate(result: str | None) -> ValidationResult:
    """Validate model output and truncate it when it is too large.

    Output over 1 MiB of UTF-8 or over 100 000 characters is cut to the
    character limit and suffixed with a truncation marker. Empty output is
    accepted with a warning.

    Args:
        result: Raw model output

    Returns:
        ValidationResult with the text to store
    """
    if not result:
        return ValidationResult(data="", warning="Empty result")

    size = len(result.encode("utf-8"))
    chars = len(result)

    if size > MAX_RESULT_BYTES:
        logger.warning(
            "result_truncated_size",
            original_bytes=size,
            max_bytes=MAX_RESULT_BYTES,
            truncated_chars=MAX_RESULT_CHARS,
        )
        return ValidationResult(
            data=result[:MAX_RESULT_CHARS] + SIZE_TRUNCATION_MARKER,
            warning=f"Result truncated from {chars} to {MAX_RESULT_CHARS} characters",
            truncated=True,
        )

    if chars > MAX_RESULT_CHARS:
        logger.warning(
            "result_truncated_length",
            original_chars=chars,
            max_chars=MAX_RESULT_CHARS,
        )
        return ValidationResult(
            data=result[:MAX_RESULT_CHARS] + LENGTH_TRUNCATION_MARKER,
            warning=f"Result truncated from {chars} to {MAX_RESULT_CHARS} characters",
            truncated=True,
        )

    return ValidationResult(data=result)

"""Token estimates for prompt documents."""

import logging

import litellm

_log = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4"


def estimate_tokens_heuristic(text: str) -> int:
    """Estimate tokens using character heuristic (len/4)."""
    return len(text) // 4


def estimate_tokens(text: str, model: str = DEFAULT_MODEL) -> int:
    """Estimate tokens using litellm.token_counter() with fallback.

    Args:
        text: Prompt text to measure.
        model: Model whose tokenizer litellm should use.

    Returns:
        Estimated token count
    """
    if not text:
        return 0
    try:
        return int(litellm.token_counter(model=model, text=text))
    except Exception as e:
        _log.debug("litellm.token_counter failed for %s (%s); using heuristic", model, e)
        return estimate_tokens_heuristic(text)

"""Error handling helpers for the SkillQuest API server."""
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An internal error occurred while processing your request. Please try again later."


class ErrorHandler:
    """Turns an unhandled server exception into a 500 body; details stay in the log."""

    def __init__(self, message: str = INTERNAL_ERROR_MESSAGE) -> None:
        self.message = message

    def to_response_body(self, exc: Exception, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        context = context or {}
        logger.error(
            "Unhandled %s on %s %s: %s",
            type(exc).__name__,
            context.get("method", "?"),
            context.get("path", "?"),
            exc,
            exc_info=exc,
        )
        return {"message": self.message}

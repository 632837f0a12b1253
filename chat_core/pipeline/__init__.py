"""Response composition stages for chat turns."""

from .composer import ResponseComposer
from .formatting import (
    format_base_response,
    personalize_response,
    add_contextual_information,
    enhance_with_knowledge,
)
from .respond import ChatResponder

__all__ = [
    "ResponseComposer",
    "ChatResponder",
    "format_base_response",
    "personalize_response",
    "add_contextual_information",
    "enhance_with_knowledge",
]

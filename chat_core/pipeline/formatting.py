"""
Formatting steps of the general reply pipeline: truncation, personalization,
intent-specific context and knowledge base enhancement.
"""

from typing import Optional

from ..config import ComposerOptions
from ..schemas import (
    ConversationContext, Intent, KnowledgeEntry, QueryAnalysis, ResponseLength
)
from ..utils import first_sentences, truncate_text
from . import templates


def as_intent(value: Optional[str]) -> Optional[Intent]:
    """Map a free intent string onto the Intent enum, or None if unknown."""
    if value is None:
        return None
    try:
        return Intent(value)
    except ValueError:
        return None


def format_base_response(draft: str, context: ConversationContext, options: ComposerOptions) -> str:
    """Trim and truncate the draft, then personalize it if enabled."""
    formatted = truncate_text(draft.strip(), options.max_response_length)

    if options.personalize_response and context.user_preferences:
        formatted = personalize_response(formatted, context)

    return formatted


def personalize_response(content: str, context: ConversationContext) -> str:
    """
    Adjust content to the session's preferences.

    Short replies keep the first two sentences; detailed replies gain a
    background block and related concepts. Returning users get a greeting.
    """
    preferences = context.user_preferences
    if preferences is None:
        return content

    if preferences.preferred_response_length == ResponseLength.short:
        personalized = first_sentences(content, 2)
    elif preferences.preferred_response_length == ResponseLength.detailed:
        personalized = add_detailed_context(content, context)
    else:
        personalized = content

    greeting = get_returning_greeting(context)
    if greeting:
        personalized = f"{greeting}\n\n{personalized}"

    return personalized


def add_detailed_context(content: str, context: ConversationContext) -> str:
    """Append background information and related concepts."""
    detailed = content

    intent = as_intent(context.current_intent)
    background = templates.BACKGROUND_INFO.get(intent) if intent else None
    if background:
        detailed += f"\n\n**Background Information:**\n{background}"

    concepts = get_related_concepts(content)
    if concepts:
        lines = "".join(f"{i}. {concept}\n" for i, concept in enumerate(concepts, 1))
        detailed += f"\n\n**Related Concepts:**\n{lines}"

    return detailed


def get_related_concepts(content: str) -> list[str]:
    """Canned concept lines triggered by keywords present in the content."""
    lowered = content.lower()
    concepts = [
        concept for triggers, concept in templates.RELATED_CONCEPTS
        if any(trigger in lowered for trigger in triggers)
    ]
    return concepts[:templates.MAX_RELATED_CONCEPTS]


def get_returning_greeting(context: ConversationContext) -> Optional[str]:
    message_count = len(context.messages)
    for threshold, greeting in templates.RETURNING_GREETINGS:
        if message_count > threshold:
            return greeting
    return None


def add_contextual_information(
    content: str,
    analysis: QueryAnalysis,
    context: ConversationContext
) -> str:
    """Prefix follow-up context and append intent-specific notices."""
    if analysis.is_follow_up:
        previous = as_intent(analysis.previous_intent)
        prefix = templates.FOLLOW_UP_PREFIXES.get(previous) if previous else None
        if prefix:
            content = f"{prefix}\n\n{content}"

    intent = analysis.classification.intent
    if intent == Intent.troubleshooting:
        state = context.troubleshooting_state
        if state and state.escalation_level > 1:
            content += f"\n\n{templates.ESCALATION_HINT}"
    elif intent == Intent.onboarding:
        if context.onboarding_step is not None:
            content += "\n\n" + templates.ONBOARDING_STEP_HINT.format(step=context.onboarding_step)
    elif intent == Intent.product:
        content += f"\n\n{templates.DOCUMENTATION_HINT}"

    return content


def enhance_with_knowledge(content: str, entries: list[KnowledgeEntry]) -> str:
    """
    Append the top knowledge answer unless the draft already contains it.
    Only the first characters of the answer are compared.
    """
    if not entries:
        return content

    answer = entries[0].answer
    prefix = answer.lower()[:templates.ENHANCE_PREFIX_LENGTH]
    if prefix not in content.lower():
        content += f"\n\n**Additional Information:**\n{answer}"

    return content

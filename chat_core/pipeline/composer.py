"""
Response composition stage.
Turns intent, knowledge matches, an LLM draft and conversation state into a
structured reply with suggestions, next steps, links and progress.
"""

import logging
import math
import time
from typing import Optional, Sequence

from ..config import ComposerOptions, get_composer_options
from ..schemas import (
    ConversationContext, ErrorType, GeneratedResponse, Intent, KnowledgeEntry,
    ProductInfo, ProgressIndicators, QueryAnalysis, RelatedLink, ResponseMetadata,
    SearchResult
)
from . import templates
from .formatting import (
    add_contextual_information, enhance_with_knowledge, format_base_response
)

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3


def _copy_links(links: Sequence[RelatedLink]) -> list[RelatedLink]:
    return [link.model_copy() for link in links]


def _as_entries(matches: Sequence[KnowledgeEntry | SearchResult]) -> list[KnowledgeEntry]:
    return [m.entry if isinstance(m, SearchResult) else m for m in matches]


def _bullets(items: Sequence[str]) -> str:
    return "\n".join(f"• {item}" for item in items)


def _numbered(items: Sequence[str]) -> str:
    return "".join(f"{i}. {item}\n" for i, item in enumerate(items, 1))


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)


class ResponseComposer:
    """
    Builds GeneratedResponse values. Each public method is one formatting mode;
    none of them mutate the conversation context they are given.
    """

    def __init__(self, options: ComposerOptions | None = None):
        """
        Initialize the composer.

        Args:
            options: Default options for the general pipeline
        """
        self.options = options or get_composer_options()

    def _metadata(
        self,
        start: float,
        model_used: str,
        confidence: float,
        intent: str,
        next_steps: Optional[list[str]] = None,
        related_links: Optional[list[RelatedLink]] = None,
        extra_ms: float = 0.0,
        include: bool = True
    ) -> ResponseMetadata:
        return ResponseMetadata(
            processing_time_ms=_elapsed_ms(start) + extra_ms,
            model_used=model_used,
            confidence=confidence,
            intent=intent,
            next_steps=list(next_steps) if include and next_steps is not None else None,
            related_links=_copy_links(related_links) if include and related_links is not None else None,
        )

    # General pipeline

    def generate_response(
        self,
        draft: str,
        analysis: QueryAnalysis,
        context: ConversationContext,
        options: ComposerOptions | None = None,
        llm_elapsed_ms: float = 0.0
    ) -> GeneratedResponse:
        """
        Format an LLM draft for the classified intent.

        Args:
            draft: Raw text from the language model (may be empty)
            analysis: Intent classification, follow-up hints and knowledge matches
            context: Current conversation context (read only)
            options: Overrides for this call
            llm_elapsed_ms: Time the language model took, added to processing time

        Returns:
            GeneratedResponse, or the fallback response if the draft is empty
            or formatting fails
        """
        config = options or self.options
        start = time.perf_counter()

        if not draft or not draft.strip():
            logger.warning("Empty draft for intent %s, using fallback", analysis.classification.intent.value)
            return self.generate_fallback_response(draft, llm_elapsed_ms)

        try:
            content = format_base_response(draft, context, config)
            content = add_contextual_information(content, analysis, context)
            content = enhance_with_knowledge(content, analysis.knowledge_matches)

            intent = analysis.classification.intent
            suggestions = self._suggestions(intent, context) if config.include_suggestions else []
            next_steps = self._next_steps(intent, context)
            related_links = _copy_links(templates.RELATED_LINKS[intent])

            metadata = self._metadata(
                start, "llm-engine", analysis.classification.confidence, intent.value,
                next_steps, related_links, extra_ms=llm_elapsed_ms, include=config.include_metadata
            )
        except Exception as e:
            logger.error("Response generation failed: %s", e)
            return self.generate_fallback_response(draft, llm_elapsed_ms + _elapsed_ms(start))

        logger.info(
            "Response generated: intent=%s confidence=%.2f length=%d",
            intent.value, analysis.classification.confidence, len(content)
        )

        return GeneratedResponse(
            content=content,
            metadata=metadata,
            suggestions=suggestions,
            next_steps=next_steps,
            related_links=related_links,
        )

    @staticmethod
    def _suggestions(intent: Intent, context: ConversationContext) -> list[str]:
        if intent == Intent.onboarding and context.onboarding_step is not None:
            suggestions = templates.ONBOARDING_STEP_SUGGESTIONS
        else:
            suggestions = templates.SUGGESTIONS[intent]
        return list(suggestions[:MAX_SUGGESTIONS])

    @staticmethod
    def _next_steps(intent: Intent, context: ConversationContext) -> list[str]:
        if intent == Intent.onboarding:
            if context.onboarding_step is None:
                return []
            return [step.format(step=context.onboarding_step) for step in templates.NEXT_STEPS[intent]]
        return list(templates.NEXT_STEPS[intent])

    # FAQ

    def generate_faq_response(
        self,
        matches: Sequence[KnowledgeEntry | SearchResult],
        user_query: str,
        context: ConversationContext
    ) -> GeneratedResponse:
        """
        Answer from the best knowledge match, listing up to two related questions.

        Args:
            matches: Ranked knowledge entries or search results
            user_query: The user's question, quoted in the no-knowledge reply
            context: Current conversation context

        Returns:
            GeneratedResponse; a low-confidence apology when there are no matches
        """
        start = time.perf_counter()
        entries = _as_entries(matches)
        if not entries:
            return self._no_knowledge_response(user_query, start)

        best = entries[0]
        content = best.answer

        related = entries[1:1 + templates.MAX_RELATED_QUESTIONS]
        if related:
            content += "\n\n**Related Information:**\n" + _numbered([e.question for e in related])

        next_steps = list(templates.FAQ_NEXT_STEPS[best.category])
        related_links = _copy_links(templates.FAQ_LINKS[best.category])

        if next_steps:
            content += "\n\n**Next Steps:**\n" + _numbered(next_steps)
        if related_links:
            content += "\n\n**Helpful Resources:**\n" + _numbered(
                [f"[{link.title}]({link.url})" for link in related_links]
            )

        logger.info("FAQ response from entry %s (%d matches)", best.id, len(entries))

        return GeneratedResponse(
            content=content,
            metadata=self._metadata(start, "knowledge-base", 0.9, Intent.faq.value, next_steps, related_links),
            suggestions=templates.FAQ_SUGGESTIONS[:MAX_SUGGESTIONS],
            next_steps=next_steps,
            related_links=related_links,
        )

    def _no_knowledge_response(self, user_query: str, start: float) -> GeneratedResponse:
        logger.info("No knowledge found for FAQ query")
        return GeneratedResponse(
            content=templates.NO_KNOWLEDGE_MESSAGE.format(query=user_query),
            metadata=self._metadata(start, "fallback", 0.3, Intent.general.value),
            suggestions=templates.NO_KNOWLEDGE_SUGGESTIONS[:MAX_SUGGESTIONS],
        )

    # Troubleshooting

    def generate_troubleshooting_response(
        self,
        solutions: Sequence[str],
        problem_description: str,
        context: ConversationContext
    ) -> GeneratedResponse:
        """
        List solutions in the order given, tiering the first three.

        Args:
            solutions: Candidate solutions, already ordered by likelihood and simplicity
            problem_description: Short description of the problem
            context: Current conversation context; escalation level above 1 adds a handoff notice

        Returns:
            GeneratedResponse
        """
        start = time.perf_counter()

        content = f"🔧 **Troubleshooting: {problem_description}**\n\n"
        content += "**Solutions to try (ordered by likelihood of success):**\n\n"

        for index, solution in enumerate(solutions):
            tier = templates.SOLUTION_TIERS[min(index, len(templates.SOLUTION_TIERS) - 1)]
            content += f"**{index + 1}.** {tier}\n   {solution}\n\n"

        state = context.troubleshooting_state
        if state and state.escalation_level > 1:
            content += f"{templates.TROUBLESHOOTING_ESCALATION_NOTICE}\n\n"

        content += "📝 **Instructions:**\n" + _bullets(templates.TROUBLESHOOTING_INSTRUCTIONS) + "\n"

        next_steps = list(templates.TROUBLESHOOTING_NEXT_STEPS)
        related_links = self._troubleshooting_links(problem_description)

        return GeneratedResponse(
            content=content,
            metadata=self._metadata(
                start, "troubleshooting-engine", 0.8, Intent.troubleshooting.value, next_steps, related_links
            ),
            suggestions=templates.TROUBLESHOOTING_SUGGESTIONS[:MAX_SUGGESTIONS],
            next_steps=next_steps,
            related_links=related_links,
        )

    @staticmethod
    def _troubleshooting_links(problem_description: str) -> list[RelatedLink]:
        links = _copy_links(templates.TROUBLESHOOTING_BASE_LINKS)
        lowered = problem_description.lower()
        for triggers, link in templates.TROUBLESHOOTING_PROBLEM_LINKS:
            if any(trigger in lowered for trigger in triggers):
                links.append(link.model_copy())
        return links

    # Onboarding

    def generate_onboarding_response(
        self,
        current_step: int,
        total_steps: int,
        step_content: str,
        context: ConversationContext
    ) -> GeneratedResponse:
        """
        Render one onboarding step with a progress bar.

        The step counters come from the caller; reaching total_steps switches
        the reply from a next-steps block to a completion block.
        """
        start = time.perf_counter()

        if total_steps < 1 or current_step < 0:
            logger.warning("Invalid onboarding progress %d/%d", current_step, total_steps)
            return self.generate_fallback_response(step_content)

        completion = math.floor(current_step / total_steps * 100 + 0.5)
        in_progress = current_step < total_steps

        content = f"**Step {current_step} of {total_steps}** {self._progress_bar(current_step, total_steps)}\n"
        content += f"*Progress: {completion}% complete*\n\n"
        content += step_content

        if in_progress:
            content += f"\n\n{templates.ONBOARDING_IN_PROGRESS_BLOCK}"
            suggestions = templates.ONBOARDING_STEP_SUGGESTIONS
            next_steps = [f"Complete step {current_step}", f"Proceed to step {current_step + 1}"]
        else:
            content += "\n\n" + templates.ONBOARDING_COMPLETE_BLOCK.format(total=total_steps)
            suggestions = templates.ONBOARDING_COMPLETE_SUGGESTIONS
            next_steps = ["Explore the main features", "Ask questions as needed"]

        related_links = self._onboarding_links(current_step, total_steps)

        return GeneratedResponse(
            content=content,
            metadata=self._metadata(
                start, "onboarding-engine", 0.85, Intent.onboarding.value, next_steps, related_links
            ),
            suggestions=list(suggestions[:MAX_SUGGESTIONS]),
            next_steps=next_steps,
            related_links=related_links,
            progress_indicators=ProgressIndicators(
                current_step=current_step,
                total_steps=total_steps,
                completion_percentage=completion,
            ),
        )

    @staticmethod
    def _progress_bar(current_step: int, total_steps: int) -> str:
        progress = min(current_step, total_steps)
        markers = [
            templates.PROGRESS_FILLED if i <= progress else templates.PROGRESS_EMPTY
            for i in range(1, total_steps + 1)
        ]
        return f"[{' '.join(markers)}]"

    @staticmethod
    def _onboarding_links(current_step: int, total_steps: int) -> list[RelatedLink]:
        links = _copy_links(templates.ONBOARDING_BASE_LINKS)
        if current_step <= 2:
            links.append(RelatedLink(title="Installation Requirements", url="/docs/requirements"))
        if 2 <= current_step <= 4:
            links.append(RelatedLink(title="Configuration Examples", url="/docs/config-examples"))
        if current_step >= total_steps - 1:
            links.append(RelatedLink(title="Advanced Features", url="/docs/advanced"))
            links.append(RelatedLink(title="Best Practices", url="/docs/best-practices"))
        return links

    # Product

    def generate_product_info_response(
        self,
        product_info: ProductInfo | dict,
        context: ConversationContext
    ) -> GeneratedResponse:
        """
        Render pricing, availability and specifications, skipping absent sections.

        Args:
            product_info: Structured product record
            context: Current conversation context

        Returns:
            GeneratedResponse
        """
        start = time.perf_counter()
        info = product_info if isinstance(product_info, ProductInfo) else ProductInfo.model_validate(product_info)

        sections = [f"# {info.name}\n\n{info.description}\n"]

        if info.pricing and info.pricing.plans:
            block = "## 💰 Pricing\n\n"
            for plan in info.pricing.plans:
                block += f"**{plan.name}** - {plan.price}\n"
                block += "".join(f"• {feature}\n" for feature in plan.features)
                block += "\n"
            sections.append(block)

        if info.availability:
            availability = info.availability
            block = "## 📅 Availability\n\n"
            block += f"**Status:** {templates.AVAILABILITY_LABELS[availability.status]}\n"
            if availability.release_date:
                block += f"**Release Date:** {availability.release_date}\n"
            if availability.regions:
                block += f"**Available Regions:** {', '.join(availability.regions)}\n"
            sections.append(block + "\n")

        specs = info.specifications
        if specs and any((specs.requirements, specs.compatibility, specs.performance)):
            block = "## 🔧 Specifications\n\n"
            for label, items in (
                ("System Requirements", specs.requirements),
                ("Compatibility", specs.compatibility),
                ("Performance", specs.performance),
            ):
                if items:
                    block += f"**{label}:**\n" + "".join(f"• {item}\n" for item in items) + "\n"
            sections.append(block)

        next_steps = list(templates.PRODUCT_NEXT_STEPS)
        related_links = _copy_links(templates.PRODUCT_LINKS)

        return GeneratedResponse(
            content="\n".join(sections),
            metadata=self._metadata(
                start, "product-info-engine", 0.95, Intent.product.value, next_steps, related_links
            ),
            suggestions=templates.PRODUCT_SUGGESTIONS[:MAX_SUGGESTIONS],
            next_steps=next_steps,
            related_links=related_links,
        )

    # Errors and fallback

    def generate_error_response(
        self,
        error_type: ErrorType | str,
        detail: Optional[str] = None,
        context: Optional[ConversationContext] = None
    ) -> GeneratedResponse:
        """
        Canned reply for an upstream failure.

        Args:
            error_type: One of the ErrorType values; unrecognized values count as unknown
            detail: Optional detail shown for invalid_input and unknown errors
            context: Unused; accepted so callers can pass the session context uniformly

        Returns:
            GeneratedResponse tagged with intent "error"
        """
        start = time.perf_counter()
        try:
            error_type = ErrorType(error_type)
        except ValueError:
            error_type = ErrorType.unknown

        template = templates.ERROR_TEMPLATES[error_type]

        content = f"{template.heading}\n\n{template.message}"
        if template.detail_label and detail:
            content += f"\n\n{template.detail_label} {detail}"
        if template.tips:
            content += f"\n\n{template.tips_heading}\n{_bullets(template.tips)}"
        if template.closing:
            content += f"\n\n{template.closing}"

        next_steps = list(template.next_steps)
        related_links = _copy_links(templates.ERROR_LINKS)

        logger.info("Error response generated: type=%s", error_type.value)

        return GeneratedResponse(
            content=content,
            metadata=self._metadata(start, "error-handler", 0.2, "error", next_steps),
            suggestions=template.suggestions[:MAX_SUGGESTIONS],
            next_steps=next_steps,
            related_links=related_links,
        )

    def generate_fallback_response(
        self,
        draft: Optional[str],
        processing_time_ms: float = 0.0
    ) -> GeneratedResponse:
        """
        Low-confidence reply used when normal composition is not possible.

        A non-empty draft is kept with a disclaimer; otherwise a canned apology
        is returned.
        """
        start = time.perf_counter()

        if draft and draft.strip():
            content = f"{draft}\n\n{templates.LOW_CONFIDENCE_DISCLAIMER}"
        else:
            content = templates.FALLBACK_MESSAGE

        next_steps = list(templates.FALLBACK_NEXT_STEPS)
        related_links = _copy_links(templates.FALLBACK_LINKS)

        return GeneratedResponse(
            content=content,
            metadata=self._metadata(start, "fallback", 0.1, Intent.general.value, extra_ms=processing_time_ms),
            suggestions=templates.FALLBACK_SUGGESTIONS[:MAX_SUGGESTIONS],
            next_steps=next_steps,
            related_links=related_links,
        )

"""
One conversation turn: knowledge search, composition and context bookkeeping.

Intent classification and the language model call happen outside; their
results are passed in already resolved. Onboarding and troubleshooting turns
without a draft are driven by the guided flow catalogs instead.
"""

import logging
from typing import Optional

from ..errors import SessionNotFoundError
from ..kb.conversation_store import ConversationStore
from ..kb.retriever import INTENT_CATEGORIES, SearchEngine
from ..schemas import (
    ChatTurnResult, ConversationContext, ErrorType, GeneratedResponse, Intent,
    IntentClassification, MessageType, QueryAnalysis, SearchResult, TroubleshootingState
)
from . import flows
from .composer import ResponseComposer

logger = logging.getLogger(__name__)


class ChatResponder:
    """
    Runs turns against injected collaborators. Holds no state of its own
    beyond references to the stores it was given.
    """

    def __init__(
        self,
        search_engine: SearchEngine,
        composer: ResponseComposer,
        conversations: ConversationStore
    ):
        self.search_engine = search_engine
        self.composer = composer
        self.conversations = conversations

    def require_context(self, session_id: str) -> ConversationContext:
        """Context for a session, raising SessionNotFoundError if unknown."""
        context = self.conversations.get(session_id)
        if context is None:
            raise SessionNotFoundError(session_id)
        return context

    def respond(
        self,
        session_id: str,
        utterance: str,
        classification: IntentClassification,
        draft: Optional[str] = None,
        is_follow_up: bool = False,
        previous_intent: Optional[str] = None,
        llm_elapsed_ms: float = 0.0,
        upstream_error: ErrorType | None = None,
        error_detail: Optional[str] = None,
        solution_worked: Optional[bool] = None
    ) -> ChatTurnResult:
        """
        Compose the reply for one user utterance and record both messages.

        Args:
            session_id: Existing session id
            utterance: What the user said
            classification: External intent classification
            draft: Language model draft, if one was produced
            is_follow_up: Whether the classifier judged this a follow-up
            previous_intent: Intent of the previous turn
            llm_elapsed_ms: Time the language model call took
            upstream_error: Failure reported by the language model call
            error_detail: Detail string for invalid_input/unknown errors
            solution_worked: Outcome of the last offered troubleshooting
                solution; None when the user did not report one

        Returns:
            ChatTurnResult with the composed reply and the knowledge hits used

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        context = self.require_context(session_id)
        intent = classification.intent

        hits: list[SearchResult] = []
        if upstream_error is None and intent in INTENT_CATEGORIES:
            hits = self.search_engine.search_for_intent(utterance, intent)

        analysis = QueryAnalysis(
            classification=classification,
            is_follow_up=is_follow_up,
            previous_intent=previous_intent,
            knowledge_matches=[hit.entry for hit in hits],
        )

        if upstream_error is not None:
            response = self.composer.generate_error_response(upstream_error, error_detail, context)
        elif draft:
            response = self.composer.generate_response(draft, analysis, context, llm_elapsed_ms=llm_elapsed_ms)
        elif intent == Intent.faq:
            response = self.composer.generate_faq_response(hits, utterance, context)
        elif intent == Intent.onboarding:
            response = self._onboarding_turn(session_id, context)
        elif intent == Intent.troubleshooting:
            response = self._troubleshooting_turn(session_id, utterance, analysis, context, solution_worked)
        else:
            response = self.composer.generate_response("", analysis, context, llm_elapsed_ms=llm_elapsed_ms)

        self.conversations.add_message(
            session_id, utterance, MessageType.user,
            intent=intent.value, confidence=classification.confidence
        )
        self.conversations.add_message(
            session_id, response.content, MessageType.assistant,
            intent=intent.value, confidence=response.metadata.confidence
        )

        logger.info(
            "Turn completed: session=%s intent=%s hits=%d model=%s",
            session_id, intent.value, len(hits), response.metadata.model_used
        )
        return ChatTurnResult(session_id=session_id, response=response, knowledge_hits=hits)

    def _onboarding_turn(self, session_id: str, context: ConversationContext) -> GeneratedResponse:
        """Advance to the next onboarding step; the last step completes the flow."""
        total = len(flows.ONBOARDING_STEPS)
        step = 1 if context.onboarding_step is None else min(context.onboarding_step + 1, total)
        self.conversations.set_onboarding_step(session_id, step)

        response = self.composer.generate_onboarding_response(step, total, flows.step_content(step), context)

        if step >= total:
            self.conversations.set_onboarding_step(session_id, None)
            logger.info("Onboarding completed: session=%s", session_id)
        return response

    def _troubleshooting_turn(
        self,
        session_id: str,
        utterance: str,
        analysis: QueryAnalysis,
        context: ConversationContext,
        solution_worked: Optional[bool]
    ) -> GeneratedResponse:
        """
        Offer the untried solutions for the current issue.

        A reported failure marks the first untried solution as attempted and
        escalates; once every solution has failed, human support is offered.
        A reported success closes the issue.
        """
        state = context.troubleshooting_state or TroubleshootingState()

        if solution_worked and state.current_issue:
            self.conversations.reset_troubleshooting(session_id)
            logger.info("Troubleshooting resolved: session=%s", session_id)
            return self.composer.generate_response(flows.RESOLVED_MESSAGE, analysis, context)

        issue = state.current_issue
        if issue is None:
            issue = utterance
            self.conversations.start_troubleshooting(session_id, issue)
        elif solution_worked is False:
            untried = flows.remaining_solutions(issue, state.attempted_solutions)
            self.conversations.record_troubleshooting_failure(
                session_id, untried[0].title if untried else None
            )

        attempted = context.troubleshooting_state.attempted_solutions
        solutions = [flows.describe_solution(s) for s in flows.remaining_solutions(issue, attempted)]
        return self.composer.generate_troubleshooting_response(
            solutions or [flows.HUMAN_SUPPORT], issue, context
        )

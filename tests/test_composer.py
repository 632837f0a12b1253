"""
Tests for response composition across every formatting mode.
"""

import pytest

from chat_core.config import ComposerOptions
from chat_core.pipeline import ResponseComposer
from chat_core.pipeline import templates
from chat_core.schemas import (
    ErrorType, Intent, ProductInfo, ResponseLength, TroubleshootingState, UserPreferences
)

from conftest import make_analysis, make_messages


PRODUCT = {
    "name": "Chat Widget",
    "description": "Embeddable support chat.",
    "pricing": {
        "plans": [
            {"name": "Starter", "price": "$0/month", "features": ["1 site", "Community support"]},
            {"name": "Pro", "price": "$49/month", "features": ["10 sites"]},
        ]
    },
    "availability": {"status": "coming_soon", "release_date": "2025-01-01", "regions": ["EU", "US"]},
}


class TestOnboarding:
    """Tests for the onboarding branch."""

    def test_step_in_progress(self, composer, context):
        """Step 2 of 5 shows 40% and a next-steps block."""
        response = composer.generate_onboarding_response(2, 5, "Install the widget.", context)

        assert "Step 2 of 5" in response.content
        assert "[● ● ○ ○ ○]" in response.content
        assert "40% complete" in response.content
        assert "Next Steps" in response.content
        assert "Congratulations" not in response.content
        assert response.progress_indicators.completion_percentage == 40
        assert response.progress_indicators.current_step == 2
        assert response.progress_indicators.total_steps == 5
        assert response.metadata.confidence == 0.85
        assert response.metadata.model_used == "onboarding-engine"
        assert response.metadata.intent == "onboarding"

    def test_final_step_completes(self, composer, context):
        """Reaching the last step shows the completion block."""
        response = composer.generate_onboarding_response(5, 5, "All done.", context)

        assert "Congratulations" in response.content
        assert "Completed all 5 onboarding steps" in response.content
        assert response.progress_indicators.completion_percentage == 100
        assert response.suggestions == templates.ONBOARDING_COMPLETE_SUGGESTIONS

    @pytest.mark.parametrize("current,total,expected", [(1, 3, 33), (2, 3, 67), (1, 8, 13), (0, 4, 0)])
    def test_completion_rounding(self, composer, context, current, total, expected):
        """Completion percentage rounds half up."""
        response = composer.generate_onboarding_response(current, total, "Step.", context)
        assert response.progress_indicators.completion_percentage == expected

    def test_invalid_total_falls_back(self, composer, context):
        """A zero step total degrades to the fallback reply."""
        response = composer.generate_onboarding_response(1, 0, "Step.", context)

        assert response.metadata.model_used == "fallback"
        assert response.progress_indicators is None


class TestFAQ:
    """Tests for the FAQ branch."""

    def test_answer_with_related_questions(self, composer, engine, context):
        """The best answer leads, followed by up to two related questions."""
        results = engine.search("voice microphone speech")
        response = composer.generate_faq_response(results, "voice microphone speech", context)

        assert response.content.startswith(results[0].entry.answer)
        assert "**Related Information:**" in response.content
        assert f"1. {results[1].entry.question}" in response.content
        assert response.metadata.confidence == 0.9
        assert response.metadata.model_used == "knowledge-base"
        assert response.metadata.intent == "faq"
        assert response.related_links

    def test_single_match_has_no_related_block(self, composer, store, context):
        """A single match omits the related questions block."""
        entry = store.get_all()[0]
        response = composer.generate_faq_response([entry], "What is this chatbot?", context)

        assert response.content.startswith(entry.answer)
        assert "**Related Information:**" not in response.content
        assert "**Helpful Resources:**" in response.content

    def test_no_knowledge(self, composer, context):
        """No matches produce a low-confidence reply quoting the query."""
        response = composer.generate_faq_response([], "quantum billing", context)

        assert '"quantum billing"' in response.content
        assert response.metadata.confidence == 0.3
        assert response.metadata.model_used == "fallback"
        assert response.metadata.intent == "general"


class TestTroubleshooting:
    """Tests for the troubleshooting branch."""

    def test_solutions_are_tiered(self, composer, context):
        """The first three solutions carry tier labels in order."""
        solutions = ["Refresh the page", "Clear the cache", "Try another browser", "Reinstall"]
        response = composer.generate_troubleshooting_response(solutions, "Widget not loading", context)
        content = response.content

        assert "Troubleshooting: Widget not loading" in content
        assert content.index("Refresh the page") < content.index("Clear the cache") < content.index("Reinstall")
        assert content.index("Most Likely") < content.index("Alternative") < content.index("Additional Option")
        assert "**4.**" in content
        assert "Need More Help?" not in content
        assert response.metadata.confidence == 0.8
        assert response.metadata.model_used == "troubleshooting-engine"

    def test_escalation_notice(self, composer, context):
        """Escalation above level 1 adds a human support notice."""
        context.troubleshooting_state = TroubleshootingState(escalation_level=2)
        response = composer.generate_troubleshooting_response(["Restart"], "Crash", context)

        assert "Need More Help?" in response.content

    def test_problem_keyword_links(self, composer, context):
        """Problem keywords add matching documentation links."""
        response = composer.generate_troubleshooting_response(["Restart"], "Slow API calls", context)
        titles = [link.title for link in response.related_links]

        assert "Troubleshooting Guide" in titles
        assert "Performance Optimization" in titles
        assert "API Documentation" in titles
        assert "Installation Guide" not in titles


class TestProductInfo:
    """Tests for the product branch."""

    def test_sections(self, composer, context):
        """Pricing and availability render; missing specifications are skipped."""
        response = composer.generate_product_info_response(PRODUCT, context)
        content = response.content

        assert content.startswith("# Chat Widget")
        assert "## 💰 Pricing" in content
        assert "**Starter** - $0/month" in content
        assert "• Community support" in content
        assert "🔜 Coming Soon" in content
        assert "**Release Date:** 2025-01-01" in content
        assert "**Available Regions:** EU, US" in content
        assert "Specifications" not in content
        assert response.metadata.confidence == 0.95
        assert response.metadata.model_used == "product-info-engine"

    def test_empty_plans_and_partial_specs(self, composer, context):
        """Empty plan lists and empty specification groups are omitted."""
        info = ProductInfo(
            name="Widget",
            description="Chat.",
            pricing={"plans": []},
            availability={"status": "beta"},
            specifications={"requirements": ["Modern browser"]},
        )
        content = composer.generate_product_info_response(info, context).content

        assert "Pricing" not in content
        assert "🧪 Beta Version" in content
        assert "**System Requirements:**" in content
        assert "Compatibility" not in content
        assert "Performance" not in content

    def test_empty_specifications_omitted(self, composer, context):
        """Specifications with no entries in any group print no header."""
        info = {"name": "W", "description": "D", "specifications": {}}
        content = composer.generate_product_info_response(info, context).content

        assert "Specifications" not in content
        assert content == "# W\n\nD\n"

    @pytest.mark.parametrize("status,label", [
        ("available", "✅ Available Now"),
        ("deprecated", "⚠️ Deprecated"),
    ])
    def test_availability_labels(self, composer, context, status, label):
        """Each availability status maps to its label."""
        info = {"name": "W", "description": "D", "availability": {"status": status}}
        assert label in composer.generate_product_info_response(info, context).content


class TestErrorResponses:
    """Tests for canned error replies."""

    def test_invalid_input_with_detail(self, composer):
        """Invalid input shows the caller's detail."""
        response = composer.generate_error_response(ErrorType.invalid_input, "message was empty")

        assert "Invalid Input" in response.content
        assert "**Details:** message was empty" in response.content
        assert response.metadata.confidence == 0.2
        assert response.metadata.model_used == "error-handler"
        assert response.metadata.intent == "error"

    def test_timeout_ignores_detail(self, composer):
        """Timeouts do not echo details."""
        response = composer.generate_error_response("timeout", "upstream 504")

        assert "Request Timeout" in response.content
        assert "upstream 504" not in response.content

    def test_unrecognized_type_is_unknown(self, composer):
        """Unknown error types render the generic template."""
        response = composer.generate_error_response("disk_full", "boom")

        assert "Unexpected Error" in response.content
        assert "**Error details:** boom" in response.content

    @pytest.mark.parametrize("error_type", list(ErrorType))
    def test_every_type_has_template(self, composer, error_type):
        """Every error type renders suggestions and next steps."""
        response = composer.generate_error_response(error_type)

        assert 0 < len(response.suggestions) <= 3
        assert response.next_steps


class TestFallback:
    """Tests for the fallback reply."""

    def test_empty_draft(self, composer):
        """Without a draft the canned apology is used."""
        response = composer.generate_fallback_response("")

        assert response.content == templates.FALLBACK_MESSAGE
        assert response.metadata.confidence == 0.1
        assert response.metadata.model_used == "fallback"

    def test_draft_kept_with_disclaimer(self, composer):
        """A usable draft is kept and flagged as possibly incomplete."""
        response = composer.generate_fallback_response("Partial answer")

        assert response.content.startswith("Partial answer")
        assert templates.LOW_CONFIDENCE_DISCLAIMER in response.content


class TestGeneralPipeline:
    """Tests for composing LLM drafts."""

    def test_truncation(self, context):
        """Drafts are truncated to max_response_length with an ellipsis."""
        composer = ResponseComposer(ComposerOptions(max_response_length=20, personalize_response=False))
        response = composer.generate_response("x" * 50, make_analysis(Intent.general), context)

        assert response.content == "x" * 17 + "..."
        assert response.metadata.model_used == "llm-engine"

    def test_confidence_and_suggestions(self, composer, context):
        """Confidence comes from the classifier; suggestions are capped."""
        response = composer.generate_response(
            "Here is how.", make_analysis(Intent.troubleshooting, confidence=0.65), context
        )

        assert response.metadata.confidence == 0.65
        assert response.metadata.intent == "troubleshooting"
        assert 0 < len(response.suggestions) <= 3
        assert response.next_steps == templates.NEXT_STEPS[Intent.troubleshooting]

    def test_suggestions_disabled(self, context):
        """Suggestions can be switched off."""
        composer = ResponseComposer(ComposerOptions(include_suggestions=False))
        response = composer.generate_response("Hello.", make_analysis(Intent.general), context)

        assert response.suggestions == []

    def test_metadata_disabled(self, context):
        """Without metadata, next steps and links stay off the envelope."""
        composer = ResponseComposer(ComposerOptions(include_metadata=False))
        response = composer.generate_response("Steps.", make_analysis(Intent.product), context)

        assert response.metadata.next_steps is None
        assert response.metadata.related_links is None
        assert response.next_steps

    def test_empty_draft_falls_back(self, composer, context):
        """Blank drafts produce the fallback reply."""
        response = composer.generate_response("   ", make_analysis(Intent.faq), context)

        assert response.metadata.model_used == "fallback"
        assert response.metadata.confidence == 0.1

    def test_follow_up_prefix(self, composer, context):
        """Follow-ups are prefixed by the previous intent's lead-in."""
        analysis = make_analysis(Intent.troubleshooting, is_follow_up=True, previous_intent="troubleshooting")
        response = composer.generate_response("Try again.", analysis, context)

        assert response.content.startswith("Continuing with your troubleshooting issue:")

    def test_escalation_hint(self, composer, context):
        """Repeated troubleshooting failures add an escalation hint."""
        context.troubleshooting_state = TroubleshootingState(escalation_level=2)
        response = composer.generate_response("Try again.", make_analysis(Intent.troubleshooting), context)

        assert templates.ESCALATION_HINT in response.content

    def test_onboarding_step(self, composer, context):
        """An active onboarding step is mentioned and drives next steps."""
        context.onboarding_step = 2
        response = composer.generate_response("Do this.", make_analysis(Intent.onboarding), context)

        assert "step 2 of the onboarding" in response.content
        assert response.next_steps[0] == "Complete current step 2"
        assert response.suggestions == templates.ONBOARDING_STEP_SUGGESTIONS

    def test_onboarding_without_step(self, composer, context):
        """Onboarding without a step has no next steps."""
        response = composer.generate_response("Welcome.", make_analysis(Intent.onboarding), context)
        assert response.next_steps == []

    def test_product_documentation_hint(self, composer, context):
        """Product replies point at the documentation."""
        response = composer.generate_response("It does X.", make_analysis(Intent.product), context)
        assert response.content.endswith(templates.DOCUMENTATION_HINT)

    def test_knowledge_enhancement(self, composer, store, context):
        """The top knowledge answer is appended when the draft lacks it."""
        entry = store.get_all()[0]
        analysis = make_analysis(Intent.faq, knowledge_matches=[entry])
        response = composer.generate_response("I am a bot.", analysis, context)

        assert "**Additional Information:**" in response.content
        assert response.content.endswith(entry.answer)

    def test_knowledge_not_duplicated(self, composer, store, context):
        """Drafts already containing the answer are left alone."""
        entry = store.get_all()[0]
        analysis = make_analysis(Intent.faq, knowledge_matches=[entry])
        response = composer.generate_response(entry.answer, analysis, context)

        assert "**Additional Information:**" not in response.content

    def test_context_not_mutated(self, composer, context):
        """Composition never writes to the context."""
        context.messages = make_messages(3)
        before = context.model_dump()
        composer.generate_response("Hi.", make_analysis(Intent.general), context)

        assert context.model_dump() == before


class TestPersonalization:
    """Tests for preference-driven personalization."""

    def test_short_keeps_two_sentences(self, composer, context):
        """Short preference keeps the first two sentences."""
        context.user_preferences = UserPreferences(preferred_response_length=ResponseLength.short)
        response = composer.generate_response(
            "First point. Second point! Third point.", make_analysis(Intent.general), context
        )

        assert response.content == "First point. Second point."

    def test_detailed_adds_background(self, composer, context):
        """Detailed preference adds background and related concepts."""
        context.user_preferences = UserPreferences(preferred_response_length=ResponseLength.detailed)
        context.current_intent = "troubleshooting"
        response = composer.generate_response(
            "Check your API key and security settings.", make_analysis(Intent.troubleshooting), context
        )

        assert "**Background Information:**" in response.content
        assert "**Related Concepts:**" in response.content
        assert "API integration and authentication" in response.content
        assert "Security considerations and compliance" in response.content

    def test_personalization_disabled(self, context):
        """Disabled personalization leaves the draft as is."""
        composer = ResponseComposer(ComposerOptions(personalize_response=False))
        context.user_preferences = UserPreferences(preferred_response_length=ResponseLength.short)
        response = composer.generate_response("One. Two. Three.", make_analysis(Intent.general), context)

        assert response.content == "One. Two. Three."

    @pytest.mark.parametrize("count,greeting", [
        (5, None),
        (6, "Good to see you again!"),
        (11, "Welcome back! I see we've been having quite a conversation."),
    ])
    def test_returning_greeting(self, composer, context, count, greeting):
        """Longer histories get a tiered greeting."""
        context.messages = make_messages(count)
        response = composer.generate_response("Sure.", make_analysis(Intent.general), context)

        if greeting is None:
            assert response.content == "Sure."
        else:
            assert response.content == f"{greeting}\n\nSure."

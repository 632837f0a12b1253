"""
Canned text tables used by the response composer, keyed by intent, category,
error type and availability status.
"""

from typing import Optional
from pydantic import BaseModel, Field

from ..schemas import AvailabilityStatus, Category, ErrorType, Intent, RelatedLink


def _links(*pairs: tuple[str, str]) -> list[RelatedLink]:
    return [RelatedLink(title=title, url=url) for title, url in pairs]


# General pipeline

SUGGESTIONS: dict[Intent, list[str]] = {
    Intent.faq: [
        "Can you explain that differently?",
        "Do you have more information about this?",
        "What else can you help me with?",
    ],
    Intent.troubleshooting: [
        "That worked, thank you!",
        "I need more detailed steps",
        "Can I speak to a human?",
    ],
    Intent.onboarding: [
        "How do I get started?",
        "What do I need to do first?",
        "Can you guide me through setup?",
    ],
    Intent.product: [
        "How much does this cost?",
        "What are the system requirements?",
        "How do I integrate this?",
    ],
    Intent.general: [
        "Can you help me with something else?",
        "What can you do?",
        "I have another question",
    ],
}

# Onboarding suggestions once a step is in progress
ONBOARDING_STEP_SUGGESTIONS = [
    "I'm ready for the next step",
    "Can you repeat this step?",
    "I need help with this step",
]

NEXT_STEPS: dict[Intent, list[str]] = {
    Intent.faq: [],
    Intent.troubleshooting: [
        "Try the suggested solutions",
        "Report back on results",
        "Request escalation if needed",
    ],
    Intent.onboarding: [
        "Complete current step {step}",
        "Ask for clarification if needed",
        "Proceed to next step when ready",
    ],
    Intent.product: [
        "Review the information provided",
        "Ask follow-up questions",
        "Check documentation for details",
    ],
    Intent.general: [],
}

RELATED_LINKS: dict[Intent, list[RelatedLink]] = {
    Intent.faq: [],
    Intent.troubleshooting: _links(
        ("Troubleshooting Guide", "/docs/troubleshooting"),
        ("Common Issues", "/docs/common-issues"),
    ),
    Intent.onboarding: _links(
        ("Getting Started Guide", "/docs/getting-started"),
        ("Installation Instructions", "/docs/installation"),
    ),
    Intent.product: _links(
        ("Product Documentation", "/docs/product"),
        ("API Reference", "/docs/api"),
    ),
    Intent.general: [],
}

FOLLOW_UP_PREFIXES: dict[Intent, Optional[str]] = {
    Intent.faq: None,
    Intent.troubleshooting: "Continuing with your troubleshooting issue:",
    Intent.onboarding: "Continuing with your onboarding:",
    Intent.product: "More information about the product:",
    Intent.general: None,
}

ESCALATION_HINT = "💡 If these suggestions don't help, I can connect you with human support."
ONBOARDING_STEP_HINT = "📍 You're currently on step {step} of the onboarding process."
DOCUMENTATION_HINT = "📚 For more detailed information, you can also check our documentation."

# Prefix length of the knowledge answer checked against the draft
ENHANCE_PREFIX_LENGTH = 50


# Personalization

BACKGROUND_INFO: dict[Intent, Optional[str]] = {
    Intent.faq: None,
    Intent.troubleshooting: (
        "Troubleshooting involves systematically identifying and resolving issues. The most effective "
        "approach is to start with the most common causes and work toward more complex solutions."
    ),
    Intent.onboarding: (
        "Onboarding is designed to help you get up and running quickly while ensuring you understand "
        "the key concepts and best practices."
    ),
    Intent.product: (
        "Our product information is regularly updated to reflect the latest features, pricing, and "
        "availability. All details provided are current as of the last update."
    ),
    Intent.general: None,
}

RELATED_CONCEPTS: list[tuple[tuple[str, ...], str]] = [
    (("api",), "API integration and authentication"),
    (("config", "setting"), "Configuration management and best practices"),
    (("install", "setup"), "Installation requirements and environment setup"),
    (("performance",), "Performance optimization and monitoring"),
    (("security",), "Security considerations and compliance"),
]

MAX_RELATED_CONCEPTS = 3

# (minimum prior messages, greeting), checked in order
RETURNING_GREETINGS: list[tuple[int, str]] = [
    (10, "Welcome back! I see we've been having quite a conversation."),
    (5, "Good to see you again!"),
]


# FAQ branch

FAQ_SUGGESTIONS = [
    "Can you explain that differently?",
    "What else can you help me with?",
    "Do you have more information about this topic?",
]

FAQ_LINKS: dict[Category, list[RelatedLink]] = {
    Category.faq: _links(
        ("Complete FAQ Section", "/docs/faq"),
        ("Getting Started Guide", "/docs/getting-started"),
    ),
    Category.product: _links(
        ("Product Documentation", "/docs/product"),
        ("Feature Comparison", "/docs/features"),
        ("Pricing Information", "/pricing"),
    ),
    Category.troubleshooting: _links(
        ("Troubleshooting Guide", "/docs/troubleshooting"),
        ("Common Issues", "/docs/common-issues"),
    ),
    Category.onboarding: _links(
        ("Setup Instructions", "/docs/setup"),
        ("Configuration Guide", "/docs/configuration"),
    ),
}

FAQ_NEXT_STEPS: dict[Category, list[str]] = {
    Category.faq: [
        "Let me know if you need clarification",
        "Ask follow-up questions if needed",
        "Explore related topics in our documentation",
    ],
    Category.product: [
        "Review the detailed product documentation",
        "Check if this feature meets your specific needs",
        "Consider trying a demo or free trial",
    ],
    Category.troubleshooting: [
        "Try the suggested solution",
        "Test if the issue is resolved",
        "Contact support if the problem persists",
    ],
    Category.onboarding: [
        "Follow the setup instructions",
        "Complete the configuration steps",
        "Test your setup with a simple example",
    ],
}

MAX_RELATED_QUESTIONS = 2

NO_KNOWLEDGE_MESSAGE = (
    "I don't have specific information about \"{query}\" in my knowledge base. However, I can still "
    "try to help you with general questions or connect you with human support for more detailed assistance."
)

NO_KNOWLEDGE_SUGGESTIONS = [
    "Can you rephrase the question?",
    "What else can you help me with?",
    "I'd like to speak with someone",
]


# Troubleshooting branch

SOLUTION_TIERS = ["🟢 **Most Likely**", "🟡 **Alternative**", "🔵 **Additional Option**"]

TROUBLESHOOTING_ESCALATION_NOTICE = (
    "⚠️ **Need More Help?**\n"
    "Since you've tried multiple solutions, I can connect you with human support for personalized assistance."
)

TROUBLESHOOTING_INSTRUCTIONS = [
    "Try solutions in the order listed above",
    "Test each solution completely before moving to the next",
    "Let me know which solution works or if you need more help",
]

TROUBLESHOOTING_SUGGESTIONS = [
    "That worked, thank you!",
    "I tried that but it didn't work",
    "Can you provide more detailed steps?",
]

TROUBLESHOOTING_NEXT_STEPS = [
    "Try the suggested solutions in order",
    "Report back on which solutions you've attempted",
    "Request escalation if none of the solutions work",
]

TROUBLESHOOTING_BASE_LINKS = _links(
    ("Troubleshooting Guide", "/docs/troubleshooting"),
    ("Common Issues & Solutions", "/docs/common-issues"),
)

TROUBLESHOOTING_PROBLEM_LINKS: list[tuple[tuple[str, ...], RelatedLink]] = [
    (("install", "setup"), RelatedLink(title="Installation Guide", url="/docs/installation")),
    (("config", "setting"), RelatedLink(title="Configuration Reference", url="/docs/configuration")),
    (("api", "integration"), RelatedLink(title="API Documentation", url="/docs/api")),
    (("performance", "slow"), RelatedLink(title="Performance Optimization", url="/docs/performance")),
]


# Onboarding branch

PROGRESS_FILLED = "●"
PROGRESS_EMPTY = "○"

ONBOARDING_IN_PROGRESS_BLOCK = (
    "📋 **Next Steps:**\n"
    "• Complete the current step\n"
    "• Verify everything is working correctly\n"
    "• Let me know when you're ready to continue\n\n"
    "When you're ready, I can guide you through the next step."
)

ONBOARDING_COMPLETE_BLOCK = (
    "🎉 **Congratulations!** You've completed the onboarding process.\n\n"
    "✅ **What you've accomplished:**\n"
    "• Completed all {total} onboarding steps\n"
    "• Set up your system successfully\n"
    "• Ready to start using the full features"
)

ONBOARDING_COMPLETE_SUGGESTIONS = ["What can I do now?", "How do I get more help?", "Thank you!"]

ONBOARDING_BASE_LINKS = _links(
    ("Complete Onboarding Guide", "/docs/onboarding"),
    ("Quick Start Checklist", "/docs/quick-start"),
)


# Product branch

AVAILABILITY_LABELS: dict[AvailabilityStatus, str] = {
    AvailabilityStatus.available: "✅ Available Now",
    AvailabilityStatus.coming_soon: "🔜 Coming Soon",
    AvailabilityStatus.beta: "🧪 Beta Version",
    AvailabilityStatus.deprecated: "⚠️ Deprecated",
}

PRODUCT_SUGGESTIONS = [
    "How do I get started?",
    "What are the system requirements?",
    "Can I try this for free?",
]

PRODUCT_NEXT_STEPS = [
    "Review the pricing options",
    "Check system requirements",
    "Consider starting with a trial",
    "Contact sales for enterprise options",
]

PRODUCT_LINKS = _links(
    ("Product Documentation", "/docs/product"),
    ("Getting Started Guide", "/docs/getting-started"),
    ("API Reference", "/docs/api"),
    ("Support Center", "/support"),
)


# Errors and fallback

class ErrorTemplate(BaseModel):
    """Canned reply for one upstream failure type."""
    heading: str
    message: str
    detail_label: Optional[str] = Field(default=None, description="Label for caller-supplied details")
    tips_heading: Optional[str] = None
    tips: list[str] = Field(default_factory=list)
    closing: Optional[str] = None
    suggestions: list[str]
    next_steps: list[str]


ERROR_TEMPLATES: dict[ErrorType, ErrorTemplate] = {
    ErrorType.timeout: ErrorTemplate(
        heading="⏱️ **Request Timeout**",
        message=(
            "Your request took longer than expected to process. This might be due to high server "
            "load or a complex query."
        ),
        tips_heading="**What to try:**",
        tips=["Wait a moment and try again", "Simplify your question", "Break complex requests into smaller parts"],
        suggestions=["Try again", "Simplify my question", "Ask something else"],
        next_steps=["Wait a moment", "Retry your request", "Simplify if needed"],
    ),
    ErrorType.service_unavailable: ErrorTemplate(
        heading="🔧 **Service Temporarily Unavailable**",
        message="I'm experiencing technical difficulties right now. Our team is working to resolve this quickly.",
        tips_heading="**What you can do:**",
        tips=["Try again in a few minutes", "Check our status page for updates", "Contact support for urgent matters"],
        suggestions=["Try again later", "Check status page", "Contact support"],
        next_steps=["Wait a few minutes", "Check service status", "Contact support if urgent"],
    ),
    ErrorType.rate_limit: ErrorTemplate(
        heading="🚦 **Rate Limit Reached**",
        message="You've sent quite a few messages recently! Please wait a moment before sending another message.",
        closing="This helps ensure good performance for everyone using the service.",
        suggestions=["Wait and try again", "What are the limits?", "Contact support"],
        next_steps=["Wait before sending another message", "Review rate limits", "Contact support if needed"],
    ),
    ErrorType.invalid_input: ErrorTemplate(
        heading="❌ **Invalid Input**",
        message="There was an issue with your request format. Please check your input and try again.",
        detail_label="**Details:**",
        tips_heading="**Tips:**",
        tips=["Use clear, complete sentences", "Avoid special characters or formatting", "Ask one question at a time"],
        suggestions=["Rephrase my question", "What format should I use?", "Ask something else"],
        next_steps=["Rephrase your question", "Use simpler language", "Try a different approach"],
    ),
    ErrorType.unknown: ErrorTemplate(
        heading="⚠️ **Unexpected Error**",
        message="Something unexpected happened while processing your request.",
        detail_label="**Error details:**",
        closing="Please try again, and if the problem persists, contact our support team.",
        suggestions=["Try again", "Contact support", "Ask something else"],
        next_steps=["Retry your request", "Contact support if it persists", "Try a different question"],
    ),
}

ERROR_LINKS = _links(
    ("Help Center", "/help"),
    ("Contact Support", "/support"),
    ("Service Status", "/status"),
)

LOW_CONFIDENCE_DISCLAIMER = (
    "⚠️ *Note: This response may be incomplete due to a processing issue. "
    "Please let me know if you need clarification.*"
)

FALLBACK_MESSAGE = (
    "🤖 I apologize, but I encountered an issue processing your request.\n\n"
    "**What you can try:**\n"
    "• Rephrase your question in different words\n"
    "• Break complex questions into smaller parts\n"
    "• Ask about a specific topic or feature\n"
    "• Contact our support team for personalized help\n\n"
    "I'm here to help, so please don't hesitate to try again!"
)

FALLBACK_SUGGESTIONS = ["Try rephrasing your question", "Ask about a specific feature", "Contact support"]

FALLBACK_NEXT_STEPS = [
    "Rephrase your question",
    "Try asking about something specific",
    "Contact support if the issue persists",
]

FALLBACK_LINKS = _links(
    ("Help Center", "/help"),
    ("Contact Support", "/support"),
    ("FAQ", "/faq"),
)

"""
Default knowledge entries loaded at process start.
"""

import logging

from ..schemas import Category
from .store import KnowledgeStore

logger = logging.getLogger(__name__)


DEFAULT_ENTRIES: list[dict] = [
    # FAQ
    {
        "category": Category.faq,
        "question": "What is this chatbot?",
        "answer": (
            "This is an AI-powered chatbot that can help you with frequently asked questions, "
            "troubleshooting, onboarding guidance, and product information. It uses open-source "
            "language models to provide helpful responses."
        ),
        "keywords": ["chatbot", "ai", "help", "assistant", "what is"],
    },
    {
        "category": Category.faq,
        "question": "How do I use voice commands?",
        "answer": (
            "Click the microphone button to activate voice input. Speak clearly and the system "
            "will convert your speech to text. The chatbot can also read responses aloud if voice "
            "output is enabled."
        ),
        "keywords": ["voice", "speech", "microphone", "audio", "speak"],
    },
    {
        "category": Category.faq,
        "question": "Is my conversation data secure?",
        "answer": (
            "Yes, your conversations are processed securely. We use encryption for data transmission "
            "and follow privacy best practices. Sensitive information is handled appropriately and "
            "data retention policies are enforced."
        ),
        "keywords": ["security", "privacy", "data", "secure", "encryption"],
    },
    # Onboarding
    {
        "category": Category.onboarding,
        "question": "How do I get started?",
        "answer": (
            "Welcome! To get started: 1) Ask me any question using text or voice, 2) I can help with "
            "FAQs, troubleshooting, and product information, 3) Use the suggestions provided to "
            "explore different topics."
        ),
        "keywords": ["getting started", "start", "begin", "first time", "new user"],
    },
    {
        "category": Category.onboarding,
        "question": "How do I integrate the chatbot into my website?",
        "answer": (
            "Integration is simple: 1) Include our JavaScript widget, 2) Configure your preferences, "
            "3) Customize the styling to match your brand. The widget is designed to work with all "
            "modern web technologies."
        ),
        "keywords": ["integration", "embed", "website", "install", "setup"],
    },
    # Troubleshooting
    {
        "category": Category.troubleshooting,
        "question": "The chatbot is not responding",
        "answer": (
            "If the chatbot isn't responding: 1) Check your internet connection, 2) Refresh the page, "
            "3) Try rephrasing your question, 4) Contact support if the issue persists."
        ),
        "keywords": ["not responding", "not working", "broken", "fix", "troubleshoot"],
    },
    {
        "category": Category.troubleshooting,
        "question": "Voice input is not working",
        "answer": (
            "For voice input issues: 1) Check microphone permissions in your browser, 2) Ensure your "
            "microphone is working, 3) Try using a different browser, 4) Fall back to text input if needed."
        ),
        "keywords": ["voice", "microphone", "speech", "not working", "permissions"],
    },
    # Product
    {
        "category": Category.product,
        "question": "What features are available?",
        "answer": (
            "Key features include: Text and voice chat, Intent classification, FAQ responses, "
            "Troubleshooting guidance, Onboarding assistance, Easy website integration, "
            "Customizable styling, and Open-source LLM integration."
        ),
        "keywords": ["features", "capabilities", "what can", "functionality"],
    },
    {
        "category": Category.product,
        "question": "What are the system requirements?",
        "answer": (
            "System requirements: Modern web browser with JavaScript enabled, Microphone access for "
            "voice features (optional), Internet connection for LLM processing, and Standard web "
            "hosting for deployment."
        ),
        "keywords": ["requirements", "system", "browser", "compatibility"],
    },
]


def build_default_store() -> KnowledgeStore:
    """
    Create a knowledge store populated with the default entries.

    Returns:
        A new KnowledgeStore owned by the caller
    """
    store = KnowledgeStore()
    report = store.bulk_import(DEFAULT_ENTRIES)
    logger.info("Seeded knowledge base with %d entries", report.imported)
    return store

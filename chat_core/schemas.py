"""
Pydantic schemas for knowledge entries, conversation state and composed replies.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class Category(str, Enum):
    """Knowledge entry category."""
    faq = "faq"
    troubleshooting = "troubleshooting"
    product = "product"
    onboarding = "onboarding"


class Intent(str, Enum):
    """Intent label assigned to a user utterance by the external classifier."""
    faq = "faq"
    troubleshooting = "troubleshooting"
    onboarding = "onboarding"
    product = "product"
    general = "general"


class ResponseLength(str, Enum):
    """Preferred reply verbosity."""
    short = "short"
    medium = "medium"
    detailed = "detailed"


class ErrorType(str, Enum):
    """Upstream failure taxonomy rendered as canned replies."""
    timeout = "timeout"
    service_unavailable = "service_unavailable"
    rate_limit = "rate_limit"
    invalid_input = "invalid_input"
    unknown = "unknown"


class AvailabilityStatus(str, Enum):
    """Product availability vocabulary."""
    available = "available"
    coming_soon = "coming_soon"
    beta = "beta"
    deprecated = "deprecated"


class MessageType(str, Enum):
    """Author of a conversation message."""
    user = "user"
    assistant = "assistant"
    system = "system"


class Difficulty(str, Enum):
    """Effort needed to apply a troubleshooting solution."""
    easy = "easy"
    medium = "medium"
    hard = "hard"


# Knowledge base

class KnowledgeEntryCreate(BaseModel):
    """Input for adding a knowledge entry; id and timestamp are assigned by the store."""
    category: Category = Field(..., description="Entry category")
    question: str = Field(..., min_length=1, description="Canonical question")
    answer: str = Field(..., min_length=1, description="Answer text")
    keywords: list[str] = Field(default_factory=list, description="Ordered search keywords")


class KnowledgeEntryUpdate(BaseModel):
    """Partial update for a knowledge entry. Unset fields are left unchanged."""
    category: Optional[Category] = Field(default=None, description="New category")
    question: Optional[str] = Field(default=None, min_length=1, description="New question")
    answer: Optional[str] = Field(default=None, min_length=1, description="New answer")
    keywords: Optional[list[str]] = Field(default=None, description="Replacement keyword list")


class KnowledgeEntry(KnowledgeEntryCreate):
    """A knowledge base item owned by the KnowledgeStore."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique, immutable entry identifier")
    keywords: tuple[str, ...] = Field(default=(), description="Ordered search keywords")
    last_updated: datetime = Field(..., description="Timestamp of the latest mutation")


class SearchResult(BaseModel):
    """A scored search hit."""
    entry: KnowledgeEntry = Field(..., description="Matched entry")
    score: float = Field(..., ge=0.0, description="Relevance score")
    matched_keywords: list[str] = Field(default_factory=list, description="Distinct query words that matched")


class ImportFailure(BaseModel):
    """One rejected item from a bulk import."""
    index: int = Field(..., description="Position of the item in the submitted batch")
    reason: str = Field(..., description="Validation failure message")


class ImportReport(BaseModel):
    """Outcome of a bulk import."""
    imported: int = Field(default=0, description="Number of entries added")
    skipped: int = Field(default=0, description="Number of entries rejected")
    entries: list[KnowledgeEntry] = Field(default_factory=list, description="Entries that were added")
    errors: list[ImportFailure] = Field(default_factory=list, description="Per-item rejection details")


class KnowledgeStats(BaseModel):
    """Summary statistics for the knowledge store."""
    total_entries: int = Field(..., description="Number of entries")
    category_counts: dict[Category, int] = Field(default_factory=dict, description="Entries per category")
    total_keywords: int = Field(..., description="Distinct normalized keywords")
    last_updated: datetime = Field(..., description="Most recent mutation time")


# Conversation state

class Message(BaseModel):
    """A single message in a session."""
    message_id: str = Field(..., description="Unique message identifier")
    session_id: str = Field(..., description="Owning session")
    content: str = Field(..., description="Message text")
    message_type: MessageType = Field(..., description="user, assistant or system")
    timestamp: datetime = Field(default_factory=datetime.now, description="Message timestamp")
    intent: Optional[str] = Field(default=None, description="Intent attached to the message")
    confidence: Optional[float] = Field(default=None, description="Classifier confidence")


class UserPreferences(BaseModel):
    """Display preferences for a session."""
    preferred_response_length: ResponseLength = Field(default=ResponseLength.medium, description="Reply verbosity")


class TroubleshootingState(BaseModel):
    """Running troubleshooting state for a session."""
    current_issue: Optional[str] = Field(default=None, description="Problem being worked on")
    attempted_solutions: list[str] = Field(default_factory=list, description="Solutions already tried")
    escalation_level: int = Field(default=0, ge=0, description="Repeated failure counter")


class ConversationContext(BaseModel):
    """Per-session mutable conversation record."""
    messages: list[Message] = Field(default_factory=list, description="Ordered message history")
    current_intent: Optional[str] = Field(default=None, description="Intent of the latest classified message")
    onboarding_step: Optional[int] = Field(default=None, ge=0, description="Current onboarding step")
    troubleshooting_state: Optional[TroubleshootingState] = Field(default=None, description="Troubleshooting progress")
    user_preferences: Optional[UserPreferences] = Field(default=None, description="Display preferences")


class ContextSummary(BaseModel):
    """Digest of a session's history."""
    summary: str
    message_count: int
    timespan: str
    key_topics: list[str] = Field(default_factory=list)


# Composer inputs

class IntentClassification(BaseModel):
    """Output of the external intent classifier."""
    intent: Intent = Field(..., description="Classified intent")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Confidence 0-1")
    keywords: list[str] = Field(default_factory=list, description="Keywords the classifier picked out")


class QueryAnalysis(BaseModel):
    """Classification plus follow-up hints and knowledge matches for one utterance."""
    classification: IntentClassification
    is_follow_up: bool = Field(default=False, description="Whether the utterance continues the previous turn")
    previous_intent: Optional[str] = Field(default=None, description="Intent of the previous turn")
    knowledge_matches: list[KnowledgeEntry] = Field(default_factory=list, description="Ranked knowledge entries")


class PricingPlan(BaseModel):
    name: str
    price: str
    features: list[str] = Field(default_factory=list)


class Pricing(BaseModel):
    plans: list[PricingPlan] = Field(default_factory=list)


class Availability(BaseModel):
    status: AvailabilityStatus
    release_date: Optional[str] = None
    regions: Optional[list[str]] = None


class Specifications(BaseModel):
    requirements: list[str] = Field(default_factory=list)
    compatibility: list[str] = Field(default_factory=list)
    performance: list[str] = Field(default_factory=list)


# Guided flows

class FlowStep(BaseModel):
    """One step of a guided onboarding flow."""
    id: str = Field(..., description="Stable step identifier")
    title: str = Field(..., description="Short step title")
    description: str = Field(..., description="What the user does in this step")


class TroubleshootingSolution(BaseModel):
    """A canned fix offered during troubleshooting."""
    id: str = Field(..., description="Stable solution identifier")
    title: str = Field(..., description="Short solution title")
    description: str = Field(..., description="What the solution does")
    steps: list[str] = Field(default_factory=list, description="Ordered actions")
    difficulty: Difficulty = Field(default=Difficulty.easy, description="Effort needed")
    success_rate: float = Field(..., ge=0.0, le=1.0, description="Share of cases the fix resolves")


class ProductInfo(BaseModel):
    """Structured product record rendered by the product branch."""
    name: str = Field(..., description="Product name")
    description: str = Field(..., description="Short product description")
    pricing: Optional[Pricing] = Field(default=None, description="Pricing plans")
    availability: Optional[Availability] = Field(default=None, description="Availability details")
    specifications: Optional[Specifications] = Field(default=None, description="Technical specifications")


# Composer output

class RelatedLink(BaseModel):
    """A titled documentation link."""
    title: str
    url: str


class ProgressIndicators(BaseModel):
    """Progress through a multi-step flow."""
    current_step: int
    total_steps: int
    completion_percentage: int


class ResponseMetadata(BaseModel):
    """Envelope shared by every composed reply."""
    processing_time_ms: float = Field(..., description="Time spent producing the reply")
    model_used: str = Field(..., description="Engine or model that produced the content")
    confidence: float = Field(..., description="Confidence attached to the reply")
    intent: str = Field(..., description="Intent the reply answers")
    next_steps: Optional[list[str]] = Field(default=None, description="Next steps, when any")
    related_links: Optional[list[RelatedLink]] = Field(default=None, description="Related links, when any")


class GeneratedResponse(BaseModel):
    """Final structured reply handed back to the caller."""
    content: str = Field(..., description="Display text")
    metadata: ResponseMetadata
    suggestions: list[str] = Field(default_factory=list, max_length=3, description="Follow-up utterances")
    next_steps: Optional[list[str]] = Field(default=None, description="Next steps")
    related_links: Optional[list[RelatedLink]] = Field(default=None, description="Related links")
    progress_indicators: Optional[ProgressIndicators] = Field(default=None, description="Multi-step progress")


class ChatTurnResult(BaseModel):
    """Everything produced for one conversation turn."""
    session_id: str = Field(..., description="Session the turn belongs to")
    response: GeneratedResponse = Field(..., description="Composed reply")
    knowledge_hits: list[SearchResult] = Field(default_factory=list, description="Search results used for the reply")

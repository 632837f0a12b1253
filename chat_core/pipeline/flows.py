"""
Guided flow catalogs: ordered onboarding steps and per-issue troubleshooting
solutions, plus the lookups ChatResponder uses to advance a session.
"""

from ..schemas import Difficulty, FlowStep, TroubleshootingSolution

ONBOARDING_STEPS: list[FlowStep] = [
    FlowStep(
        id="welcome",
        title="Welcome",
        description="Let me introduce myself and explain how I can help you.",
    ),
    FlowStep(
        id="account_setup",
        title="Account Setup",
        description="Let's make sure your account is properly configured.",
    ),
    FlowStep(
        id="feature_overview",
        title="Feature Overview",
        description="I'll show you the key features available to you.",
    ),
    FlowStep(
        id="first_task",
        title="Complete Your First Task",
        description="Let's walk through completing your first task together.",
    ),
    FlowStep(
        id="completion",
        title="Onboarding Complete",
        description="You're all set! I'm here whenever you need assistance.",
    ),
]

BASIC_RESTART = TroubleshootingSolution(
    id="basic_restart",
    title="Basic Restart",
    description="Try restarting the application or refreshing the page.",
    steps=["Close the application", "Wait 10 seconds", "Reopen the application"],
    difficulty=Difficulty.easy,
    success_rate=0.7,
)

CLEAR_CACHE = TroubleshootingSolution(
    id="clear_cache",
    title="Clear Cache and Data",
    description="Clear your browser cache and stored data.",
    steps=["Open browser settings", "Navigate to privacy/security", "Clear browsing data", "Restart browser"],
    difficulty=Difficulty.medium,
    success_rate=0.6,
)

CHECK_PERMISSIONS = TroubleshootingSolution(
    id="check_permissions",
    title="Check Permissions",
    description="Verify that necessary permissions are granted.",
    steps=["Check browser permissions", "Enable required features", "Refresh the page"],
    difficulty=Difficulty.medium,
    success_rate=0.5,
)

CHECK_MICROPHONE = TroubleshootingSolution(
    id="check_microphone",
    title="Check Microphone Access",
    description="Allow microphone access for this site and confirm the right input device is selected.",
    steps=["Open site permissions", "Allow the microphone", "Pick the input device", "Reload the page"],
    difficulty=Difficulty.easy,
    success_rate=0.8,
)

SWITCH_BROWSER = TroubleshootingSolution(
    id="switch_browser",
    title="Try Another Browser",
    description="Open the chat in a different up-to-date browser.",
    steps=["Install or open another browser", "Open the same page", "Repeat the action"],
    difficulty=Difficulty.medium,
    success_rate=0.5,
)

CHECK_CONNECTION = TroubleshootingSolution(
    id="check_connection",
    title="Check Your Connection",
    description="Make sure your internet connection is stable.",
    steps=["Open another website", "Switch network if it fails", "Retry your question"],
    difficulty=Difficulty.easy,
    success_rate=0.65,
)

DEFAULT_SOLUTIONS = [BASIC_RESTART, CLEAR_CACHE, CHECK_PERMISSIONS]

# (issue triggers, candidate solutions), first match wins
ISSUE_SOLUTIONS: list[tuple[tuple[str, ...], list[TroubleshootingSolution]]] = [
    (("voice", "microphone", "speech", "audio"), [CHECK_MICROPHONE, SWITCH_BROWSER, BASIC_RESTART]),
    (("not responding", "slow", "timeout", "loading"), [CHECK_CONNECTION, BASIC_RESTART, CLEAR_CACHE]),
]

DIFFICULTY_ORDER = {Difficulty.easy: 0, Difficulty.medium: 1, Difficulty.hard: 2}

HUMAN_SUPPORT = (
    "Contact our support team for personalized assistance. They have access to more "
    "advanced diagnostic tools."
)

RESOLVED_MESSAGE = "Great! I'm glad we could resolve your issue. Is there anything else I can help you with?"


def step_content(step: int) -> str:
    """Display text for a 1-based onboarding step."""
    flow_step = ONBOARDING_STEPS[step - 1]
    return f"**{flow_step.title}**\n\n{flow_step.description}"


def solutions_for_issue(issue: str) -> list[TroubleshootingSolution]:
    """
    Candidate solutions for an issue, most likely first.

    Ordered by success rate, then by difficulty (easiest first).
    """
    lowered = issue.lower()
    candidates = DEFAULT_SOLUTIONS
    for triggers, solutions in ISSUE_SOLUTIONS:
        if any(trigger in lowered for trigger in triggers):
            candidates = solutions
            break

    return sorted(candidates, key=lambda s: (-s.success_rate, DIFFICULTY_ORDER[s.difficulty]))


def remaining_solutions(issue: str, attempted: list[str]) -> list[TroubleshootingSolution]:
    """Solutions for an issue whose titles are not in the attempted list."""
    return [s for s in solutions_for_issue(issue) if s.title not in attempted]


def describe_solution(solution: TroubleshootingSolution) -> str:
    text = f"**{solution.title}:** {solution.description}"
    if solution.steps:
        text += f" ({' → '.join(solution.steps)})"
    return text

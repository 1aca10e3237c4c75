"""
Framework registry for structured journal drafts.

A framework is an ordered list of components (label, description and guiding
prompt) used to scaffold a draft entry body, plus the title prefix and
description template for entries written with it.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FrameworkComponent:
    """One section of a framework scaffold."""

    name: str
    label: str
    description: str
    prompt: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "label": self.label,
            "description": self.description,
            "prompt": self.prompt,
        }


@dataclass(frozen=True)
class Framework:
    """A named scaffold."""

    key: str
    title_prefix: str
    description_template: str  # formatted with {tools}
    components: tuple[FrameworkComponent, ...]


def _c(name: str, label: str, description: str, prompt: str) -> FrameworkComponent:
    return FrameworkComponent(name, label, description, prompt)


FRAMEWORKS: dict[str, Framework] = {
    # Career story frameworks
    "STAR": Framework(
        key="STAR",
        title_prefix="Achievement Log",
        description_template="Achievement log (STAR) drafted from {tools}",
        components=(
            _c(
                "situation",
                "Situation",
                "The context and background",
                "What was happening? What was the problem or opportunity?",
            ),
            _c(
                "task",
                "Task",
                "Your specific responsibility",
                "What were you asked to do? What was your role?",
            ),
            _c(
                "action",
                "Action",
                "What you did",
                "What specific steps did you take? How did you approach it?",
            ),
            _c(
                "result",
                "Result",
                "The outcome and impact",
                "What happened? Quantify with numbers if possible.",
            ),
        ),
    ),
    "STARL": Framework(
        key="STARL",
        title_prefix="Achievement & Learning Log",
        description_template=(
            "Achievement and learning log (STAR-L) drafted from {tools}"
        ),
        components=(
            _c(
                "situation",
                "Situation",
                "The context and background",
                "What was happening? What was the challenge?",
            ),
            _c(
                "task",
                "Task",
                "Your specific responsibility",
                "What were you trying to accomplish?",
            ),
            _c("action", "Action", "What you did", "What steps did you take?"),
            _c(
                "result",
                "Result",
                "The outcome",
                "What happened? Include both successes and setbacks.",
            ),
            _c(
                "learning",
                "Learning",
                "What you learned",
                "What did you take away? How did this change your approach?",
            ),
        ),
    ),
    "CAR": Framework(
        key="CAR",
        title_prefix="Challenge Log",
        description_template="Challenge log (CAR) drafted from {tools}",
        components=(
            _c(
                "challenge",
                "Challenge",
                "The problem you faced",
                "What obstacle or challenge did you encounter?",
            ),
            _c(
                "action",
                "Action",
                "How you addressed it",
                "What did you do to overcome the challenge?",
            ),
            _c(
                "result",
                "Result",
                "The outcome",
                "What was the result of your actions?",
            ),
        ),
    ),
    "PAR": Framework(
        key="PAR",
        title_prefix="Problem Solving Log",
        description_template="Problem solving log (PAR) drafted from {tools}",
        components=(
            _c(
                "problem",
                "Problem",
                "The technical problem",
                "What was the technical problem? Be specific about constraints.",
            ),
            _c(
                "action",
                "Action",
                "Your technical approach",
                "What was your technical solution? Include tools and technologies.",
            ),
            _c(
                "result",
                "Result",
                "The measurable outcome",
                "What metrics improved? Performance numbers, cost savings, etc.",
            ),
        ),
    ),
    "SAR": Framework(
        key="SAR",
        title_prefix="Quick Wins Log",
        description_template="Quick wins log (SAR) drafted from {tools}",
        components=(
            _c(
                "situation",
                "Situation",
                "Brief context",
                "Set the scene in one sentence.",
            ),
            _c(
                "action",
                "Action",
                "What you did",
                "Describe your key actions concisely.",
            ),
            _c("result", "Result", "The outcome", "State the impact in one sentence."),
        ),
    ),
    "SOAR": Framework(
        key="SOAR",
        title_prefix="Obstacles & Results Log",
        description_template="Obstacles and results log (SOAR) drafted from {tools}",
        components=(
            _c(
                "situation",
                "Situation",
                "The business context",
                "What was the business situation or market context?",
            ),
            _c(
                "obstacles",
                "Obstacles",
                "The challenges or blockers you faced",
                "What obstacles or challenges did you encounter?",
            ),
            _c(
                "actions",
                "Actions",
                "How you overcame them",
                "What strategy and actions did you take to overcome these obstacles?",
            ),
            _c(
                "results",
                "Results",
                "Business impact",
                "What were the measurable results and business impact?",
            ),
        ),
    ),
    "SHARE": Framework(
        key="SHARE",
        title_prefix="Team Reflection Log",
        description_template="Team reflection log (SHARE) drafted from {tools}",
        components=(
            _c(
                "situation",
                "Situation",
                "The context",
                "What was the team/organizational situation?",
            ),
            _c(
                "hindrances",
                "Hindrances",
                "What obstacles or challenges arose",
                "What hindrances or obstacles did you encounter?",
            ),
            _c(
                "actions",
                "Actions",
                "What you did",
                "What actions did you take to address the situation?",
            ),
            _c(
                "results",
                "Results",
                "The outcome",
                "What were the results of your actions?",
            ),
            _c(
                "evaluation",
                "Evaluation",
                "Reflection and lessons learned",
                "What did you learn or how would you evaluate the experience?",
            ),
        ),
    ),
    "CARL": Framework(
        key="CARL",
        title_prefix="Lessons Learned Log",
        description_template="Lessons learned log (CARL) drafted from {tools}",
        components=(
            _c(
                "context",
                "Context",
                "The circumstances",
                "What was the situation? What pressures or constraints existed?",
            ),
            _c(
                "action",
                "Action",
                "What you did (or didn't do)",
                "What actions did you take? Be honest about mistakes.",
            ),
            _c(
                "result",
                "Result",
                "What happened",
                "What was the outcome? Include negative impacts.",
            ),
            _c(
                "learning",
                "Learning",
                "What you learned",
                "What did you learn? How have you changed your approach?",
            ),
        ),
    ),
    # Journal frameworks
    "ONE_ON_ONE": Framework(
        key="ONE_ON_ONE",
        title_prefix="1:1 Prep",
        description_template="1:1 prep notes drafted from {tools}",
        components=(
            _c(
                "wins",
                "Wins",
                "What went well since your last 1:1",
                "Which shipped work or results are worth calling out?",
            ),
            _c(
                "challenges",
                "Challenges",
                "Blockers and friction",
                "What slowed you down or needs attention?",
            ),
            _c(
                "focus",
                "Focus",
                "What you are working on next",
                "What are your priorities until the next 1:1?",
            ),
            _c(
                "asks",
                "Asks",
                "Where you need help",
                "What decisions, support or unblocking do you need?",
            ),
            _c(
                "feedback",
                "Feedback",
                "Feedback to give or request",
                "Is there feedback you want to share or ask for?",
            ),
        ),
    ),
    "SKILL_GAP": Framework(
        key="SKILL_GAP",
        title_prefix="Skill Development Review",
        description_template="Skill development review drafted from {tools}",
        components=(
            _c(
                "demonstrated",
                "Skills Demonstrated",
                "Skills you applied in this period",
                "Which skills did this work exercise?",
            ),
            _c(
                "learned",
                "Learned",
                "New knowledge picked up",
                "What did you learn that you did not know before?",
            ),
            _c(
                "gaps",
                "Gaps",
                "Where you felt stretched",
                "Which areas would you like to get stronger in?",
            ),
            _c(
                "plan",
                "Growth Plan",
                "Next steps for development",
                "What will you do to close these gaps?",
            ),
        ),
    ),
    "PROJECT_IMPACT": Framework(
        key="PROJECT_IMPACT",
        title_prefix="Project Impact Summary",
        description_template="Project impact summary drafted from {tools}",
        components=(
            _c(
                "project",
                "Project",
                "The project and its goal",
                "Which project did this work move forward, and why does it matter?",
            ),
            _c(
                "contribution",
                "Contribution",
                "Your part in it",
                "What did you personally build, decide or unblock?",
            ),
            _c(
                "impact",
                "Impact",
                "Measurable effect",
                "What changed for users, the team or the business?",
            ),
            _c(
                "collaboration",
                "Collaboration",
                "Who you worked with",
                "Which people or teams did you partner with?",
            ),
        ),
    ),
}

CAREER_FRAMEWORKS = ("STAR", "STARL", "CAR", "PAR", "SAR", "SOAR", "SHARE", "CARL")
JOURNAL_FRAMEWORKS = ("ONE_ON_ONE", "SKILL_GAP", "PROJECT_IMPACT")


def get_framework(name: Optional[str]) -> Optional[Framework]:
    """Look up a framework by key; None for unknown or empty names."""
    if not name:
        return None
    return FRAMEWORKS.get(name)


def get_framework_components(
    name: Optional[str],
) -> Optional[list[FrameworkComponent]]:
    """
    Get the ordered components of a framework.

    Args:
        name: Framework key, e.g. ``"STAR"`` or ``"ONE_ON_ONE"``

    Returns:
        List of components, or None if the framework is unknown
    """
    framework = get_framework(name)
    if framework is None:
        return None
    return list(framework.components)

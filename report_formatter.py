"""
RESULT REPORT FORMATTER
-----------------------
Turns a RollOutcome into the chat card payload. Plain text, no markup: the
chat collaborator decides how to render headline, banner and breakdown.
Output depends on the outcome alone.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from skill_resolution import CriticalOutcome, RollOutcome

SUCCESS_BANNER = "✔ SUCCESS"
FAILURE_BANNER = "✘ FAILURE"


@dataclass(frozen=True)
class ReportPayload:
    headline: Tuple[str, ...]
    banner: str
    flavor: str
    breakdown: Tuple[str, ...]

    def render_text(self) -> str:
        lines = list(self.headline) + [self.banner]
        if self.flavor:
            lines.append(self.flavor)
        lines.append("Detailed Report")
        lines.extend(f"  {line}" for line in self.breakdown)
        return "\n".join(lines)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "headline": list(self.headline),
            "banner": self.banner,
            "flavor": self.flavor,
            "breakdown": list(self.breakdown),
        }


def _critical_line(outcome: RollOutcome) -> List[str]:
    if outcome.critical_outcome is CriticalOutcome.SUCCESS:
        return [f"Critical Success, bonus: {outcome.critical_magnitude}"]
    if outcome.critical_outcome is CriticalOutcome.FAILURE:
        return [f"Critical Failure, penalty: {outcome.critical_magnitude}"]
    return []


def format_report(outcome: RollOutcome) -> ReportPayload:
    check = outcome.check
    result_line = f"Result: {outcome.final_total}"
    if not check.hide_difficulty:
        result_line += f" vs DV {outcome.difficulty_value}"

    mods = [f"  {m.label}: {m.signed()}" for m in outcome.modifier_ledger]
    breakdown = [
        f"d10 Roll (result): {outcome.natural_roll}",
        f"Base Roll: {outcome.base_roll}",
        f"Attribute Value ({check.attribute_key}): {check.attribute_value}",
        f"Skill Level ({check.skill_name}): {check.skill_rank}",
        "Modifiers:" if mods else "Modifiers: none",
        *mods,
        f"Total Modifier: {outcome.total_modifier_value}",
        f"Luck used: {outcome.luck_spent}",
        *_critical_line(outcome),
        f"Final Result: {outcome.final_total}",
    ]
    return ReportPayload(
        headline=(f"Test {check.skill_name} rolled by {outcome.actor_name}", result_line),
        banner=SUCCESS_BANNER if outcome.success else FAILURE_BANNER,
        flavor=check.flavor_text.strip(),
        breakdown=tuple(breakdown),
    )

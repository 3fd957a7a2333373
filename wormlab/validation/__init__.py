"""validation — Score learner circuits against the reference connectome.

Accuracy, completeness and pathway scores, a letter grade, badges and
template feedback, all reproducible from the circuit and the reference.
"""

from .validator import (
    ValidationResult,
    validate,
    no_reference_result,
)
from .grading import (
    ScoreBreakdown,
    SCORE_WEIGHTS,
    GRADE_THRESHOLDS,
    GRADES,
    BADGE_RULES,
    BadgeRule,
    round_half_up,
    overall_score,
    grade_for,
    award_badges,
    compose_feedback,
)

"""Grades, badges and feedback derived from a score breakdown.

Everything here is a pure function of a ScoreBreakdown. Badge rules are
declarative and evaluated fresh on every call; nothing accumulates
between validations.
"""

from collections import namedtuple

import numpy as np


# ---------------------------------------------------------------------------
# Score breakdown
# ---------------------------------------------------------------------------

ScoreBreakdown = namedtuple("ScoreBreakdown", [
    "behavior",
    "overall", "accuracy", "completeness", "pathway",
    "correct", "missing", "extra",
    "missing_neurons", "covered_pathways",
    "n_neurons", "n_connections",
    "plausible",
])
ScoreBreakdown.__doc__ = """Numbers a validation run is judged on.

correct, missing and extra are sorted lists of (from, to) pairs;
missing_neurons and covered_pathways are sorted lists of names.
"""

SCORE_WEIGHTS = {"accuracy": 0.4, "completeness": 0.4, "pathway": 0.2}


def round_half_up(value):
    """Round to the nearest integer, halves away from zero for scores ≥ 0."""
    return int(np.floor(value + 0.5))


def overall_score(accuracy, completeness, pathway, weights=SCORE_WEIGHTS):
    """Weighted combination of the three component scores, in [0, 100]."""
    combined = (weights["accuracy"] * accuracy
                + weights["completeness"] * completeness
                + weights["pathway"] * pathway)
    return min(100, max(0, round_half_up(combined)))


# ---------------------------------------------------------------------------
# Grades
# ---------------------------------------------------------------------------

GRADE_THRESHOLDS = (
    (95, "A+"),
    (85, "A"),
    (70, "B"),
    (50, "C"),
    (30, "D"),
)
FAILING_GRADE = "F"
GRADES = tuple(g for _, g in GRADE_THRESHOLDS) + (FAILING_GRADE,)


def grade_for(score, thresholds=GRADE_THRESHOLDS):
    """Letter grade for an overall score.

    Thresholds are checked from the highest down, so the mapping is
    monotonic in the score.
    """
    for cut, grade in thresholds:
        if score >= cut:
            return grade
    return FAILING_GRADE


# ---------------------------------------------------------------------------
# Badges
# ---------------------------------------------------------------------------

class BadgeRule(namedtuple("BadgeRule", ["name", "description", "predicate"])):
    """A badge and the condition that unlocks it."""

    def unlocked(self, breakdown):
        return bool(self.predicate(breakdown))


BADGE_RULES = (
    BadgeRule("Connectome Master", "Overall score of 90 or more",
              lambda b: b.overall >= 90),
    BadgeRule("Complete Circuit", "Every reference connection is present",
              lambda b: len(b.missing) == 0),
    BadgeRule("Perfect Match", "Overall score of 100",
              lambda b: b.overall == 100),
    BadgeRule("High Accuracy", "At least 90% of the connections are correct",
              lambda b: b.accuracy >= 90 and len(b.correct) > 0),
    BadgeRule("Valid Pathway", "At least one reference pathway is complete",
              lambda b: len(b.covered_pathways) > 0),
    BadgeRule("Connection Master", "Ten or more correct connections",
              lambda b: len(b.correct) >= 10),
    BadgeRule("Complex Network", "Ten or more neurons",
              lambda b: b.n_neurons >= 10),
    BadgeRule("Scientifically Sound", "Plausible circuit scoring 70 or more",
              lambda b: b.plausible and b.overall >= 70),
)


def award_badges(breakdown, rules=BADGE_RULES):
    """Names of the badges unlocked by `breakdown`, in rule order."""
    return [rule.name for rule in rules if rule.unlocked(breakdown)]


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------

def _edges(pairs):
    return ", ".join(f"{a} → {b}" for a, b in pairs)


def compose_feedback(breakdown):
    """Ordered diagnostic lines for a breakdown."""
    b = breakdown
    lines = [f"Overall score {b.overall}/100 (grade {grade_for(b.overall)}) "
             f"for {b.behavior}"]

    if b.correct:
        lines.append(f"{len(b.correct)} connection(s) match the reference circuit")

    if b.missing:
        if len(b.missing) <= 5:
            lines.append(f"Consider adding: {_edges(b.missing[:3])}")
        else:
            lines.append(f"{len(b.missing)} reference connections are still missing")

    if b.extra:
        if len(b.extra) <= 3:
            lines.append(f"Non-standard connections: {_edges(b.extra[:2])}")
        else:
            lines.append(f"{len(b.extra)} connections are not in the reference data")

    if b.missing_neurons:
        if len(b.missing_neurons) <= 5:
            lines.append(f"Missing neurons: {', '.join(b.missing_neurons)}")
        else:
            lines.append(f"{len(b.missing_neurons)} reference neurons are not placed yet")

    for name in b.covered_pathways:
        lines.append(f"Complete pathway: {name}")

    if b.plausible:
        lines.append("Circuit is biologically plausible")
    else:
        lines.append("Too many non-reference connections for a plausible circuit")

    if b.n_neurons < 3:
        lines.append("Add more neurons for a more complete circuit")
    if b.n_connections == 0:
        lines.append("Create connections between neurons to form a circuit")

    return lines

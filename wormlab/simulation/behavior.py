"""Behavior decision table.

The behavior is read off which driver groups ended active. A group is
active when any of its neurons is. Rules are checked in declared priority
order and the first match wins; the order mirrors command-neuron dominance,
never a comparison of activation magnitudes.
"""

from collections import namedtuple

from wormlab.circuit.types import Behavior

BACKWARD = "backward"
FORWARD = "forward"
HEAD = "head"

DRIVER_GROUPS = {
    BACKWARD: frozenset({"AVAL", "AVAR", "AVDL", "AVDR", "DA1", "DA2", "VA1"}),
    FORWARD: frozenset({"AVBL", "AVBR", "DB1", "DB2", "VB1"}),
    HEAD: frozenset({"SMBD", "SMBV"}),
}


class Rule(namedtuple("Rule", ["behavior", "requires", "excludes"])):
    """One row of the decision table.

    Fields
    ------
    behavior : Behavior
        Behavior produced when the row matches.
    requires : frozenset of str
        Driver groups that must be active.
    excludes : frozenset of str
        Driver groups that must be inactive.
    """

    def matches(self, active_groups):
        return self.requires <= active_groups and not (self.excludes & active_groups)


def _rule(behavior, requires=(), excludes=()):
    return Rule(behavior, frozenset(requires), frozenset(excludes))


DECISION_TABLE = (
    _rule(Behavior.OMEGA_TURN, requires=[BACKWARD, HEAD], excludes=[FORWARD]),
    _rule(Behavior.BACKWARD_MOVEMENT, requires=[BACKWARD], excludes=[FORWARD]),
    _rule(Behavior.FORWARD_MOVEMENT, requires=[FORWARD], excludes=[BACKWARD]),
    _rule(Behavior.HEAD_WIGGLE, requires=[HEAD], excludes=[FORWARD, BACKWARD]),
    _rule(Behavior.NO_MOVEMENT),
)


def active_groups(active_neurons):
    """Names of the driver groups with at least one active neuron."""
    active = set(active_neurons)
    return frozenset(name for name, members in DRIVER_GROUPS.items()
                     if members & active)


def classify(active_neurons, table=DECISION_TABLE):
    """Behavior for a set of active neuron ids."""
    groups = active_groups(active_neurons)
    for rule in table:
        if rule.matches(groups):
            return rule.behavior
    raise ValueError(f"Decision table has no row for driver groups {sorted(groups)}")

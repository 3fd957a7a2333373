"""Re-validation scheduling for an editing session.

While a learner edits, every change asks for a fresh simulation and
validation. Requests are debounced: a run becomes due only after a quiet
period without new requests. Each request issues a RunToken and cancels
the previous one, so the last submitted request wins and a superseded run
never reports, even if it was already executing.

The clock is injectable, which makes the timing fully testable:

    session = CircuitSession(graph, connectome, quiet_period=0.3)
    session.request("backward_movement", "touch_head")
    ...
    report = session.poll()     # None until the quiet period has elapsed
"""

import itertools
import time
from dataclasses import dataclass

from wormlab.circuit.types import Behavior, Stimulus, coerce
from wormlab.connectome.reference import get_reference
from wormlab.simulation.engine import simulate
from wormlab.suggestions.suggest import recommend_connections, suggest_pathways
from wormlab.utils import get_logger
from wormlab.validation.validator import validate

LOG = get_logger("session")

QUIET_PERIOD = 0.3  # seconds


class RunToken:
    """Handle on one requested run. Cancelled when superseded."""

    def __init__(self, run_id, behavior, stimulus, submitted_at):
        self.run_id = run_id
        self.behavior = behavior
        self.stimulus = stimulus
        self.submitted_at = submitted_at
        self._cancelled = False

    @property
    def cancelled(self):
        return self._cancelled

    def cancel(self):
        self._cancelled = True

    def __repr__(self):
        state = "cancelled" if self._cancelled else "live"
        return f"RunToken(#{self.run_id} {self.behavior.value}/{self.stimulus.value}, {state})"


@dataclass(frozen=True)
class SessionReport:
    """Everything one run produced, all computed from the same snapshot."""
    run_id: int
    revision: int
    circuit_id: int
    simulation: object
    validation: object
    connection_suggestions: tuple
    pathway_suggestions: tuple

    @property
    def behavior_matches(self):
        """True if the simulated behavior is the one being validated."""
        return self.simulation.behavior.value == self.validation.behavior

    def to_dict(self):
        return {
            "runId": self.run_id,
            "revision": self.revision,
            "circuitId": self.circuit_id,
            "simulation": self.simulation.to_dict(),
            "validation": self.validation.to_dict(),
            "behaviorMatches": self.behavior_matches,
            "connectionSuggestions": [s.to_dict() for s in self.connection_suggestions],
            "pathwaySuggestions": [s.to_dict() for s in self.pathway_suggestions],
        }


class CircuitSession:
    """Schedules simulation and validation runs for one circuit.

    Parameters
    ----------
    graph : NeuronGraph
        The circuit being edited.
    connectome : ReferenceConnectome, optional
        Defaults to the process-wide reference.
    quiet_period : float
        Seconds without new requests before a run is due.
    clock : callable
        Returns the current time in seconds.
    """

    def __init__(self, graph, connectome=None, quiet_period=QUIET_PERIOD,
                 clock=time.monotonic):
        self.graph = graph
        self.connectome = connectome if connectome is not None else get_reference()
        self.quiet_period = quiet_period
        self.clock = clock
        self._ids = itertools.count(1)
        self._pending = None
        self._latest = None

    @property
    def pending(self):
        """The live token waiting to run, or None."""
        return self._pending

    def request(self, behavior, stimulus=Stimulus.NONE):
        """Ask for a run, superseding any earlier request."""
        behavior = coerce(Behavior, behavior)
        stimulus = coerce(Stimulus, stimulus)
        if self._latest is not None:
            self._latest.cancel()
        token = RunToken(next(self._ids), behavior, stimulus, self.clock())
        self._pending = token
        self._latest = token
        LOG.debug("Requested run #%d (%s, %s)",
                  token.run_id, behavior.value, stimulus.value)
        return token

    def due(self):
        """True once the pending request has been quiet for quiet_period."""
        if self._pending is None:
            return False
        return self.clock() - self._pending.submitted_at >= self.quiet_period

    def is_current(self, token):
        return token is self._latest and not token.cancelled

    def run(self, token):
        """Execute `token` now.

        Returns
        -------
        SessionReport or None
            None if the token was superseded before or during the run.
        """
        if not self.is_current(token):
            LOG.debug("Skipping superseded run #%d", token.run_id)
            return None
        if self._pending is token:
            self._pending = None

        snapshot = self.graph.snapshot()
        simulation = simulate(snapshot, token.stimulus)
        validation = validate(snapshot, token.behavior, self.connectome)
        connections = recommend_connections(snapshot, token.behavior, self.connectome)
        pathways = suggest_pathways(snapshot, self.connectome)

        if not self.is_current(token):
            LOG.debug("Discarding run #%d superseded while running", token.run_id)
            return None
        return SessionReport(
            run_id=token.run_id,
            revision=snapshot.revision,
            circuit_id=snapshot.circuit_id,
            simulation=simulation,
            validation=validation,
            connection_suggestions=tuple(connections),
            pathway_suggestions=tuple(pathways),
        )

    def poll(self):
        """Run the pending request if it is due; otherwise return None."""
        if not self.due():
            return None
        return self.run(self._pending)

    def cancel(self):
        """Drop the pending request."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def is_stale(self, report):
        """True if the circuit changed since `report` was produced."""
        return self.graph.is_stale(report)

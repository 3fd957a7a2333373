"""Structured errors for circuit mutations.

The editor must be able to show inline feedback and keep working with the
circuit, so the NeuronGraph never raises these: it returns them inside a
MutationResult. They are still Exceptions, so a script that prefers to
fail fast can call MutationResult.raise_for_error().
"""

from dataclasses import dataclass
from typing import Optional


class CircuitError(Exception):
    """Base class for rejected circuit mutations.

    Parameters
    ----------
    message : str
        Human-readable explanation, suitable for inline editor feedback.
    **context
        Machine-readable details (ids, offending weight, ...).
    """
    code = "CircuitError"

    def __init__(self, message, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def __eq__(self, other):
        return (type(self) is type(other)
                and self.message == other.message
                and self.context == other.context)

    def __hash__(self):
        return hash((self.code, self.message))

    def to_dict(self):
        """Serialize to a plain dict."""
        return {"code": self.code, "message": self.message, **self.context}


class DuplicateId(CircuitError):
    """A neuron with this id is already in the circuit."""
    code = "DuplicateId"


class UnknownEndpoint(CircuitError):
    """A connection names a neuron that is not in the circuit."""
    code = "UnknownEndpoint"


class DuplicateEdge(CircuitError):
    """The (from, to) pair is already connected."""
    code = "DuplicateEdge"


class InvalidWeight(CircuitError):
    """The weight is not a finite number inside the allowed range."""
    code = "InvalidWeight"


class InvalidKind(CircuitError):
    """The synapse kind or neuron type is not one of the known values."""
    code = "InvalidKind"


class SelfLoop(CircuitError):
    """A connection from a neuron onto itself."""
    code = "SelfLoop"


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a NeuronGraph mutation.

    Truthy when the mutation was applied (or was a documented no-op).
    """
    error: Optional[CircuitError] = None
    changed: bool = False

    @property
    def ok(self):
        return self.error is None

    def __bool__(self):
        return self.ok

    def raise_for_error(self):
        """Raise the carried error, if any."""
        if self.error is not None:
            raise self.error
        return self

    def to_dict(self):
        return {
            "ok": self.ok,
            "changed": self.changed,
            "error": self.error.to_dict() if self.error is not None else None,
        }


APPLIED = MutationResult(changed=True)
UNCHANGED = MutationResult(changed=False)


def rejected(error):
    """A MutationResult carrying `error`."""
    return MutationResult(error=error, changed=False)

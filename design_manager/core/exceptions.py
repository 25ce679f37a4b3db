"""Exception hierarchy for the stage-gate engine and its collaborators.

Engine errors are raised synchronously to the caller and never swallowed.
The API layer maps them to HTTP status codes in one place.
"""


class StageGateError(Exception):
    """Base class for all stage-gate errors."""


class GateBlockedError(StageGateError):
    """Raised when a non-override transition fails gate evaluation.

    Recoverable: the caller may fix the RAG values, or retry as an override
    with a justification note.

    Args:
        failures: Blocking failure messages, verbatim from the evaluator.
        warnings: Advisory messages from the same evaluation.
    """

    def __init__(self, failures: list[str], warnings: list[str] | None = None) -> None:
        self.failures = list(failures)
        self.warnings = list(warnings or [])
        super().__init__("Gate check failed: " + "; ".join(self.failures))


class InvalidOverrideError(StageGateError):
    """Raised when an override transition is requested without a note."""


class InvalidRevertError(StageGateError):
    """Raised when a revert targets a stage that is not earlier in the track, or has no note."""


class UnknownStageError(StageGateError):
    """Raised when a requested stage is not part of the item's stage track.

    Args:
        stage: The requested stage value as received.
        sourcing_type: The item's sourcing type, when known.
    """

    def __init__(self, stage: object, sourcing_type: object | None = None) -> None:
        self.stage = stage
        self.sourcing_type = sourcing_type
        msg = f"Unknown stage: {stage!s}"
        if sourcing_type is not None:
            msg += f" (not in the {getattr(sourcing_type, 'value', sourcing_type)} track)"
        super().__init__(msg)


class UnknownAspectError(StageGateError, ValueError):
    """Raised when an aspect reference does not match the RAG schema."""


class UnknownSourcingTypeError(StageGateError, ValueError):
    """Raised when a sourcing type cannot be normalized."""


class DesignItemNotFoundError(StageGateError):
    """Raised when a design item does not exist in storage."""

    def __init__(self, item_id: object) -> None:
        self.item_id = item_id
        super().__init__(f"Design item id={item_id} not found")


class ConcurrentModificationError(StageGateError):
    """Raised when a save loses an optimistic-concurrency race.

    Args:
        item_id: The item that was being saved.
        expected_version: The version the caller read before mutating.
    """

    def __init__(self, item_id: object, expected_version: int) -> None:
        self.item_id = item_id
        self.expected_version = expected_version
        super().__init__(
            f"Design item id={item_id} changed since version {expected_version}; reload and retry"
        )

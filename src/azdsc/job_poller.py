"""Poll asynchronous Azure Automation operations until a terminal state.

Module imports and DSC compilation jobs are asynchronous on the Azure
control plane. The client side contract is a fixed-interval poll against an
explicit, enumerated status vocabulary:

- pending status: sleep, query again
- success status: stop, return a PollResult
- failure status: stop, raise OperationFailedError
- anything else: stop, raise UnrecognizedStatusError

Classification (classify_status) is a pure function so it can be tested
without timing; JobPoller is the driver loop around it.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, StrEnum

from azdsc.exceptions import (
    OperationFailedError,
    PollTimeoutError,
    UnrecognizedStatusError,
)

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 10.0


class OperationState(StrEnum):
    """Classified state of an asynchronous operation."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    UNRECOGNIZED = "unrecognized"

    @property
    def is_terminal(self) -> bool:
        """Whether polling stops at this state."""
        return self != OperationState.PENDING


@dataclass(frozen=True)
class StatusVocabulary:
    """Status strings an operation kind may report, grouped by outcome.

    Matching is case-insensitive. The three sets must be disjoint.
    """

    name: str
    pending: frozenset[str]
    success: frozenset[str]
    failure: frozenset[str]

    def __post_init__(self):
        groups = [
            {s.casefold() for s in self.pending},
            {s.casefold() for s in self.success},
            {s.casefold() for s in self.failure},
        ]
        if groups[0] & groups[1] or groups[0] & groups[2] or groups[1] & groups[2]:
            raise ValueError(f"Status vocabulary '{self.name}' has overlapping groups")


MODULE_PROVISIONING = StatusVocabulary(
    name="module provisioning",
    pending=frozenset(
        {
            "",
            "Creating",
            "StartingImportModuleRunbook",
            "RunningImportModuleRunbook",
            "ContentRetrieved",
            "ContentDownloaded",
            "ContentValidated",
            "ConnectionTypeImported",
            "ContentStored",
            "ModuleDataStored",
            "ActivitiesStored",
            "ModuleImportRunbookComplete",
            "Updating",
        }
    ),
    # Only Created counts as an imported module; Succeeded is terminal but fatal
    success=frozenset({"Created"}),
    failure=frozenset({"Failed", "Cancelled", "Succeeded"}),
)

COMPILATION_JOB = StatusVocabulary(
    name="compilation job",
    pending=frozenset(
        {
            "New",
            "Queued",
            "Activating",
            "Starting",
            "Running",
            "Resuming",
            "Stopping",
            "Suspending",
        }
    ),
    success=frozenset({"Completed"}),
    failure=frozenset({"Failed", "Stopped", "Suspended"}),
)


def status_text(value: object) -> str:
    """Normalize a status value from the SDK to a plain string.

    SDK models may hold plain strings or str-based enum members; a missing
    status becomes the empty string.
    """
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def classify_status(status: object, vocabulary: StatusVocabulary) -> OperationState:
    """Map a raw status to an OperationState.

    Args:
        status: Raw status reported by the service
        vocabulary: Status vocabulary of the operation kind

    Returns:
        OperationState for the status
    """
    key = status_text(status).strip().casefold()

    if key in {s.casefold() for s in vocabulary.success}:
        return OperationState.SUCCEEDED
    if key in {s.casefold() for s in vocabulary.failure}:
        return OperationState.FAILED
    if key in {s.casefold() for s in vocabulary.pending}:
        return OperationState.PENDING
    return OperationState.UNRECOGNIZED


@dataclass(frozen=True)
class PollResult:
    """Outcome of a successful poll."""

    operation_id: str
    status: str
    polls: int


class JobPoller:
    """Fixed-interval poll driver.

    One status query per iteration; sleeps only between non-terminal
    iterations. No backoff, no jitter. With max_wait=None there is no
    deadline.
    """

    def __init__(
        self,
        interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Callable[[float], None] | None = None,
        max_wait: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize poller.

        Args:
            interval: Seconds between status queries
            sleep: Sleep function (defaults to time.sleep)
            max_wait: Optional deadline in seconds
            clock: Monotonic clock used for the deadline
        """
        if interval < 0:
            raise ValueError("interval must be non-negative")
        self.interval = interval
        self.sleep = sleep or time.sleep
        self.max_wait = max_wait
        self.clock = clock

    def wait(
        self,
        operation_id: str,
        fetch_status: Callable[[], object],
        vocabulary: StatusVocabulary,
    ) -> PollResult:
        """Poll an operation until it reaches a terminal state.

        Args:
            operation_id: Identifier used in log lines and diagnostics
            fetch_status: Callable returning the current raw status
            vocabulary: Status vocabulary of the operation kind

        Returns:
            PollResult when the operation succeeds

        Raises:
            OperationFailedError: Failure-class terminal status
            UnrecognizedStatusError: Status outside the vocabulary
            PollTimeoutError: max_wait exceeded
        """
        started = self.clock()
        polls = 0

        while True:
            raw = fetch_status()
            polls += 1
            status = status_text(raw)
            state = classify_status(raw, vocabulary)
            logger.info(f"{vocabulary.name} {operation_id}: status '{status}' (poll {polls})")

            if state == OperationState.SUCCEEDED:
                return PollResult(operation_id=operation_id, status=status, polls=polls)
            if state == OperationState.FAILED:
                raise OperationFailedError(operation_id, status)
            if state == OperationState.UNRECOGNIZED:
                raise UnrecognizedStatusError(operation_id, status)

            if self.max_wait is not None:
                elapsed = self.clock() - started
                if elapsed >= self.max_wait:
                    raise PollTimeoutError(operation_id, status, elapsed)

            self.sleep(self.interval)

# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Differences - the unit of change propagated between bus models
"""
import logging
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)


class IdAlreadyAssignedError(RuntimeError):
    """Raised when an identity hook is invoked a second time"""


class IdAssignmentHook:
    """
    One-shot callback run when a backend assigns a permanent id to a bus
    created from a ``Create`` difference.

    The hook may be called from an apply worker thread; it fires at most once.
    """

    def __init__(self, callback: Callable[[str], Any], label: str = '', source: Any = None):
        self._callback = callback
        self._lock = Lock()
        self.label = label
        # Record the pending bus was pulled from, if any
        self.source = source
        self.fired = False
        self.assigned_id: Optional[str] = None

    def __call__(self, bus_id: str):
        with self._lock:
            if self.fired:
                raise IdAlreadyAssignedError(
                    f"Id for '{self.label}' already assigned ({self.assigned_id}), got {bus_id}"
                )
            self.fired = True
            self.assigned_id = bus_id

        logger.debug(f"🔗 Assigned id {bus_id} to '{self.label}'")
        self._callback(bus_id)

    def __repr__(self):
        return f"IdAssignmentHook({self.label!r}, fired={self.fired})"


@dataclass(frozen=True)
class NameUpdate:
    id: str
    name: Optional[str]


@dataclass(frozen=True)
class BoardingAreaUpdate:
    id: str
    boarding_area: Optional[str]


@dataclass
class Create:
    name: Optional[str]
    boarding_area: Optional[str]
    id: Optional[str] = None
    on_id_assigned: Optional[IdAssignmentHook] = field(default=None, compare=False, repr=False)
    source: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Delete:
    id: str
    # Exact record to remove when several share the id
    target: Any = field(default=None, compare=False, repr=False)


Difference = Union[NameUpdate, BoardingAreaUpdate, Create, Delete]


def describe(difference: Difference) -> str:
    """Short human-readable form for log lines"""
    if isinstance(difference, NameUpdate):
        return f"rename {difference.id} -> {difference.name!r}"
    if isinstance(difference, BoardingAreaUpdate):
        return f"move {difference.id} -> {difference.boarding_area!r}"
    if isinstance(difference, Create):
        return f"create {difference.name!r} ({difference.id or 'new'}) at {difference.boarding_area!r}"
    if isinstance(difference, Delete):
        return f"delete {difference.id}"
    return repr(difference)


def summarize(differences: List[Difference]) -> dict:
    """Count differences by kind"""
    counts = {'renamed': 0, 'moved': 0, 'created': 0, 'deleted': 0}
    for difference in differences:
        if isinstance(difference, NameUpdate):
            counts['renamed'] += 1
        elif isinstance(difference, BoardingAreaUpdate):
            counts['moved'] += 1
        elif isinstance(difference, Create):
            counts['created'] += 1
        elif isinstance(difference, Delete):
            counts['deleted'] += 1
    return counts


@dataclass
class ApplyResult:
    """Outcome of applying a batch of differences to one side"""
    applied: int = 0
    skipped: int = 0
    errors: List[Tuple[Difference, Exception]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def as_dict(self) -> dict:
        return {
            'applied': self.applied,
            'skipped': self.skipped,
            'failed': len(self.errors),
            'errors': [f"{describe(diff)}: {type(exc).__name__}: {exc}" for diff, exc in self.errors]
        }

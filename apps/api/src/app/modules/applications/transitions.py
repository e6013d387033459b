"""
Application Lifecycle State Machine

The single table of legal status transitions and the single function that
enforces it. Every lifecycle operation in the service layer asks
validate_transition() before touching the database.
"""

import enum

from app.modules.applications.models import ApplicationStatus


class TransitionTrigger(str, enum.Enum):
    """What caused a status change."""

    SUBMIT = "submit"
    FREEZE = "freeze"
    UNFREEZE = "unfreeze"
    ADMIN_UPDATE = "admin_update"


# Valid status transitions keyed by trigger, then by current status.
# Creation (no status -> draft) is not a transition and is handled by create.
VALID_STATUS_TRANSITIONS: dict[
    TransitionTrigger, dict[ApplicationStatus, set[ApplicationStatus]]
] = {
    TransitionTrigger.SUBMIT: {
        ApplicationStatus.DRAFT: {ApplicationStatus.SUBMITTED},
    },
    TransitionTrigger.FREEZE: {
        ApplicationStatus.SUBMITTED: {ApplicationStatus.FROZEN},
    },
    TransitionTrigger.UNFREEZE: {
        ApplicationStatus.FROZEN: {ApplicationStatus.SUBMITTED},
    },
    TransitionTrigger.ADMIN_UPDATE: {
        ApplicationStatus.SUBMITTED: {
            ApplicationStatus.UNDER_REVIEW,
            ApplicationStatus.APPROVED,
            ApplicationStatus.REJECTED,
        },
        ApplicationStatus.UNDER_REVIEW: {
            ApplicationStatus.UNDER_REVIEW,  # Re-review keeps the status, refreshes metadata
            ApplicationStatus.APPROVED,
            ApplicationStatus.REJECTED,
        },
        ApplicationStatus.FROZEN: {
            ApplicationStatus.UNDER_REVIEW,
        },
    },
}

# Owner may edit content only in these states
EDITABLE_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {ApplicationStatus.DRAFT, ApplicationStatus.FROZEN}
)

# No transition leaves these states
TERMINAL_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {ApplicationStatus.APPROVED, ApplicationStatus.REJECTED, ApplicationStatus.CANCELLED}
)


class InvalidStatusTransitionError(ValueError):
    """Raised when a transition is not in the table."""

    def __init__(
        self,
        trigger: TransitionTrigger,
        current_status: ApplicationStatus,
        new_status: ApplicationStatus,
    ):
        self.trigger = trigger
        self.current_status = current_status
        self.new_status = new_status
        valid_targets = allowed_targets(trigger, current_status)
        super().__init__(
            f"Invalid status transition ({trigger.value}): "
            f"{current_status.value} -> {new_status.value}. "
            f"Valid transitions: {sorted(s.value for s in valid_targets)}"
        )


def allowed_targets(
    trigger: TransitionTrigger,
    current_status: ApplicationStatus,
) -> set[ApplicationStatus]:
    """Statuses reachable from current_status by trigger."""
    return VALID_STATUS_TRANSITIONS.get(trigger, {}).get(current_status, set())


def is_allowed(
    trigger: TransitionTrigger,
    current_status: ApplicationStatus,
    new_status: ApplicationStatus,
) -> bool:
    return new_status in allowed_targets(trigger, current_status)


def validate_transition(
    trigger: TransitionTrigger,
    current_status: ApplicationStatus,
    new_status: ApplicationStatus,
) -> None:
    """
    Validate a status transition against the table.

    Args:
        trigger: What is causing the change
        current_status: Status the application holds now
        new_status: Requested status

    Raises:
        InvalidStatusTransitionError: If the transition is not allowed
    """
    if not is_allowed(trigger, current_status, new_status):
        raise InvalidStatusTransitionError(trigger, current_status, new_status)

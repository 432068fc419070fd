"""Domain enums for scheduling."""

from enum import Enum


class WorkOrderStatus(str, Enum):
    """Work order status enumeration."""

    QUEUED = "queued"  # Waiting on its resource (or for a resource, if a remainder)
    ACTIVE = "active"  # An operator is working on it
    PAUSED = "paused"  # Work interrupted, time tracking closed
    COMPLETED = "completed"  # Full target quantity delivered
    PARTIAL = "partial"  # Closed short; the rest lives in a remainder order

    @property
    def is_terminal(self) -> bool:
        return self in {WorkOrderStatus.COMPLETED, WorkOrderStatus.PARTIAL}

    @property
    def is_open(self) -> bool:
        """Queued, active or paused: the order still holds work on its resource."""
        return not self.is_terminal

    @property
    def is_in_session(self) -> bool:
        """Active or paused: completion may be recorded."""
        return self in {WorkOrderStatus.ACTIVE, WorkOrderStatus.PAUSED}

    def can_transition_to(self, target_status: "WorkOrderStatus") -> bool:
        valid_transitions = {
            WorkOrderStatus.QUEUED: {WorkOrderStatus.ACTIVE},
            WorkOrderStatus.ACTIVE: {
                WorkOrderStatus.PAUSED,
                WorkOrderStatus.COMPLETED,
                WorkOrderStatus.PARTIAL,
            },
            WorkOrderStatus.PAUSED: {
                WorkOrderStatus.ACTIVE,
                WorkOrderStatus.COMPLETED,
                WorkOrderStatus.PARTIAL,
            },
            WorkOrderStatus.COMPLETED: set(),  # Terminal state
            WorkOrderStatus.PARTIAL: set(),  # Terminal state
        }
        return target_status in valid_transitions.get(self, set())


class WorkOrderKind(str, Enum):
    PRODUCTION = "production"
    DOWNTIME = "downtime"


class DowntimeProvenance(str, Enum):
    """Where a downtime period came from."""

    SCHEDULED = "scheduled"  # Planned maintenance window
    UNSCHEDULED = "unscheduled"  # Reported by an operator

    @property
    def pushes_timeline(self) -> bool:
        return self == DowntimeProvenance.UNSCHEDULED


class JobStatus(str, Enum):
    """Coarse job status derived from the job's work orders."""

    UNASSIGNED = "unassigned"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class ChangeAction(str, Enum):
    """Kinds of state change recorded on the change feed and in the audit ledger."""

    JOB_CREATED = "job_created"
    JOB_ASSIGNED = "job_assigned"
    JOB_STATUS_CHANGED = "job_status_changed"
    WO_STARTED = "wo_started"
    WO_PAUSED = "wo_paused"
    WO_RESUMED = "wo_resumed"
    WO_COMPLETED = "wo_completed"
    WO_PARTIAL = "wo_partial"
    WO_CREATED_REMAINDER = "wo_created_remainder"
    WO_REASSIGNED = "wo_reassigned"
    WO_UNASSIGNED = "wo_unassigned"
    DOWNTIME_REPORTED = "downtime_reported"
    DOWNTIME_CLEARED = "downtime_cleared"
    DOWNTIME_SCHEDULED = "downtime_scheduled"
    RESOURCE_CREATED = "resource_created"
    RESOURCE_UPDATED = "resource_updated"
    RESOURCE_DELETED = "resource_deleted"

    @property
    def touches_resource_entries(self) -> bool:
        """Changes that require every schedule entry on the resource to be re-derived."""
        return self in {ChangeAction.RESOURCE_UPDATED, ChangeAction.RESOURCE_DELETED}

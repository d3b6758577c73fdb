from enum import Enum


class SchoolType(str, Enum):
    PRIMARY = "PRIMARY"
    MIDDLE = "MIDDLE"


class EmploymentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ON_LEAVE = "ON_LEAVE"
    INACTIVE = "INACTIVE"
    RETIRED = "RETIRED"


class AvailabilityStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    PREFERRED = "PREFERRED"
    LIMITED = "LIMITED"
    NOT_AVAILABLE = "NOT_AVAILABLE"


# Canonical marker stored in teacher_subjects.availability_status.
SUBJECT_AVAILABLE = AvailabilityStatus.AVAILABLE.value


class PlanStatus(str, Enum):
    DRAFT = "DRAFT"
    IN_REVIEW = "IN_REVIEW"
    APPROVED = "APPROVED"
    ARCHIVED = "ARCHIVED"

    @property
    def rank(self) -> int:
        return _PLAN_STATUS_ORDER.index(self)


_PLAN_STATUS_ORDER = [PlanStatus.DRAFT, PlanStatus.IN_REVIEW, PlanStatus.APPROVED, PlanStatus.ARCHIVED]


class AssignmentStatus(str, Enum):
    PLANNED = "PLANNED"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


LIVE_ASSIGNMENT_STATUSES = (AssignmentStatus.PLANNED.value, AssignmentStatus.CONFIRMED.value)


class ChangeType(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    STATUS_CHANGE = "STATUS_CHANGE"


class CreditHoursScope(str, Enum):
    ALL_PLANS = "ALL_PLANS"
    CURRENT_PLAN = "CURRENT_PLAN"

from internship_allocation.core.models.academic_year import AcademicYear
from internship_allocation.core.models.school import School
from internship_allocation.core.models.subject import Subject, SubjectCategory
from internship_allocation.core.models.internship_type import InternshipType
from internship_allocation.core.models.internship_demand import InternshipDemand
from internship_allocation.core.models.teacher import Teacher, TeacherAvailability, TeacherQualification
from internship_allocation.core.models.teacher_subject import TeacherSubject
from internship_allocation.core.models.zone_constraint import ZoneConstraint
from internship_allocation.core.models.allocation_plan import AllocationPlan
from internship_allocation.core.models.teacher_assignment import TeacherAssignment
from internship_allocation.core.models.credit_hour_tracking import CreditHourTracking
from internship_allocation.core.models.plan_change_log import PlanChangeLog

__all__ = [
    "AcademicYear",
    "AllocationPlan",
    "CreditHourTracking",
    "InternshipDemand",
    "InternshipType",
    "PlanChangeLog",
    "School",
    "Subject",
    "SubjectCategory",
    "Teacher",
    "TeacherAssignment",
    "TeacherAvailability",
    "TeacherQualification",
    "TeacherSubject",
    "ZoneConstraint",
]

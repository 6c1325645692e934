from slipboard.core.models.school import School
from slipboard.core.models.class_model import SchoolClass, class_guardians, class_students, class_teachers
from slipboard.core.models.student import Student, student_guardians
from slipboard.core.models.calendar_event import CalendarEvent
from slipboard.core.models.obligation import Obligation
from slipboard.core.models.interview_slot import InterviewSlot

__all__ = [
    "School",
    "SchoolClass",
    "class_teachers",
    "class_students",
    "class_guardians",
    "Student",
    "student_guardians",
    "CalendarEvent",
    "Obligation",
    "InterviewSlot",
]

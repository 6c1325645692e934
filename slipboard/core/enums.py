from enum import Enum


class UserRole(str, Enum):
    TEACHER = "teacher"
    PARENT = "parent"
    ADMIN = "admin"


class EventVisibility(str, Enum):
    CLASS = "class"
    SCHOOL = "school"
    PRIVATE = "private"


class ObligationStatus(str, Enum):
    PENDING = "pending"
    SIGNED = "signed"


class PaymentMethod(str, Enum):
    ONLINE = "online"
    CASH = "cash"


class InboxItemStatus(str, Enum):
    UNREAD = "unread"
    COMPLETED = "completed"


class StudentSlipStatus(str, Enum):
    PENDING = "pending"
    SIGNED = "signed"
    NO_PARENT = "no_parent"

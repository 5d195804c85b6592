from .auth import User, SessionToken, ROLE_ADMIN, ROLE_EMPLOYEE, ROLES
from .security import SecurityEvent
from .employees import Employee, EMPLOYEE_STATUSES
from .attendance import Location, STATUS_CHECKED_IN, STATUS_CHECKED_OUT, LOCATION_STATUSES
from .payroll import (
    PaymentRecord,
    PaymentAdjustment,
    PAYMENT_STATUSES,
    PAYMENT_METHODS,
    ADJUSTMENT_BONUS,
    ADJUSTMENT_DEDUCTION,
)
from .documents import Document, DOCUMENT_TYPES, VERIFICATION_STATUSES

__all__ = [
    'User', 'SessionToken', 'ROLE_ADMIN', 'ROLE_EMPLOYEE', 'ROLES',
    'SecurityEvent',
    'Employee', 'EMPLOYEE_STATUSES',
    'Location', 'STATUS_CHECKED_IN', 'STATUS_CHECKED_OUT', 'LOCATION_STATUSES',
    'PaymentRecord', 'PaymentAdjustment', 'PAYMENT_STATUSES', 'PAYMENT_METHODS',
    'ADJUSTMENT_BONUS', 'ADJUSTMENT_DEDUCTION',
    'Document', 'DOCUMENT_TYPES', 'VERIFICATION_STATUSES',
]

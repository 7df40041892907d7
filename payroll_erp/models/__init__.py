"""ORM models — importing this package registers every table on ``Base.metadata``."""

from payroll_erp.models.attendance import Attendance
from payroll_erp.models.department import Department
from payroll_erp.models.employee import Employee
from payroll_erp.models.leave import LeaveRequest
from payroll_erp.models.payroll import Payroll
from payroll_erp.models.user import User

__all__ = ["Attendance", "Department", "Employee", "LeaveRequest", "Payroll", "User"]

"""Employee, attendance, leave and payroll ERP backend."""

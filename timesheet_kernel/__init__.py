"""
Timesheet Kernel

The storage-facing core of timesheet reconciliation:
- Typed errors with machine-readable codes
- Structured JSON logging
- ORM models for projects, rosters, timesheets, plans and costing
- Read selectors and transactional write services
- The DRAFT -> SUBMITTED -> APPROVED lifecycle with all-or-nothing approval
"""

__version__ = "0.1.0"

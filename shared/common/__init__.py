# Shared Common Library for the consultorio reservation platform.
# Authentication, permissions, pagination, tracing middleware and the API
# error format used by every service.

__version__ = "1.0.0"

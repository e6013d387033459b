"""
Applications Module

Handles the admission application lifecycle:
1. Draft creation with a unique application number per program and year
2. Editing while draft or frozen
3. Submission behind the completeness gate (required fields and certificates)
4. Student freeze and admin unfreeze
5. Admin review decisions (under_review, approved, rejected)

Every status change is written together with its status history entry.

API Endpoints:
- /applications - Student endpoints (own application)
- /admin/applications - Reviewer endpoints (admin, program_admin)
"""

from .admin_router import router as admin_router
from .router import router

__all__ = ["router", "admin_router"]

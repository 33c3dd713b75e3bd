"""
API v1 routes.
"""

from fastapi import APIRouter

from src.api.v1 import applications, certificates, submissions

router = APIRouter()

router.include_router(submissions.router, prefix="/submissions", tags=["Submissions"])
router.include_router(applications.router, prefix="/applications", tags=["Applications"])
router.include_router(certificates.router, prefix="/certificates", tags=["Certificates"])

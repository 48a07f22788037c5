"""
api router

this file is basically the "table of contents" for all endpoints.
routes are grouped by the screen that uses them.
"""

from fastapi import APIRouter

from clinicshift.api.routes.assignments import router as assignments_router
from clinicshift.api.routes.catalog import router as catalog_router
from clinicshift.api.routes.clinic_days import router as clinic_days_router
from clinicshift.api.routes.health import router as health_router
from clinicshift.api.routes.operations import router as operations_router
from clinicshift.api.routes.participants import router as participants_router
from clinicshift.api.routes.session import router as session_router
from clinicshift.api.routes.state import router as state_router
from clinicshift.api.routes.teams import router as teams_router

api_router = APIRouter()

# health checks and sanity endpoints
api_router.include_router(health_router, tags=["health"])

# login / logout
api_router.include_router(session_router, tags=["session"])

# static roles and shifts
api_router.include_router(catalog_router, tags=["catalog"])

# admin: people and clinic days, plus the coordinator views per day
api_router.include_router(participants_router, tags=["admin"])
api_router.include_router(clinic_days_router, tags=["logistics"])

# sign-ups (the main feature)
api_router.include_router(assignments_router, tags=["assignments"])

# after-shift data entry and flow rates
api_router.include_router(operations_router, tags=["operations"])

# patient records and pharmacy
api_router.include_router(teams_router, tags=["teams"])

# whole-state debug, backup and restore
api_router.include_router(state_router, tags=["state"])

"""
V1 API router aggregator: wires all endpoint modules together.
"""

from fastapi import APIRouter

from school_leave.api.v1.endpoints import auth, health, leave_requests, live

api_router = APIRouter()

# Sessions and the role gate
api_router.include_router(auth.router)

# Leave requests (list, create, approve / reject)
api_router.include_router(leave_requests.router)

# Live client over WebSocket
api_router.include_router(live.router)

# Health
api_router.include_router(health.router)

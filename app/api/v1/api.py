from fastapi import APIRouter
from app.api.v1.endpoints import auth, jobs, events, students, stats, export

api_router = APIRouter(prefix="/api/v1")

# Include all endpoint routers
api_router.include_router(auth.router)
api_router.include_router(jobs.router)
api_router.include_router(events.router)
api_router.include_router(students.router)
api_router.include_router(stats.router)
api_router.include_router(export.router)

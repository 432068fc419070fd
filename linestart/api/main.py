from fastapi import APIRouter

from linestart.api.routes import audit, jobs, resources, schedule, work_orders

api_router = APIRouter()
api_router.include_router(jobs.router)
api_router.include_router(work_orders.router)
api_router.include_router(resources.router)
api_router.include_router(schedule.router)
api_router.include_router(audit.router)

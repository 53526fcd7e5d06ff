from fastapi import APIRouter
from leave_lottery.api.v1.endpoints.leave import applications, cancellations, exchanges, notifications, points
from leave_lottery.api.v1.endpoints.system import settings

api_router = APIRouter()

# Leave routes
api_router.include_router(applications.router, prefix="/applications", tags=["Leave"])
api_router.include_router(cancellations.router, prefix="/cancellations", tags=["Leave"])
api_router.include_router(exchanges.router, prefix="/exchanges", tags=["Priority Exchange"])
api_router.include_router(points.router, prefix="/points", tags=["Points"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])

# System routes
api_router.include_router(settings.router, prefix="/system/settings", tags=["System"])

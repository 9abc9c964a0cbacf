from fastapi import APIRouter

from url_dispatcher.presentation.routes.status import router as status_router

api = APIRouter()

routers = (status_router,)
for router in routers:
    api.include_router(router)

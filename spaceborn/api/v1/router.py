from fastapi import APIRouter

from spaceborn.api.v1.endpoints import resources, tasks, topics

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(topics.router)
api_router.include_router(resources.router)
api_router.include_router(tasks.router)

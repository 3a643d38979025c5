from fastapi import APIRouter

from .abonents import router as abonents_router

api_router = APIRouter()
api_router.include_router(abonents_router, prefix="/abonents", tags=["abonents"])

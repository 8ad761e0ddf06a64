from fastapi import APIRouter
from contact_api.api.endpoints import contact

api_router = APIRouter()

api_router.include_router(contact.router)

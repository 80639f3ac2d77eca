# medilens/api/api_router.py
from fastapi import APIRouter
from medilens.api.v1 import chat, files, users

api_router = APIRouter()
api_router.include_router(users.router, prefix="/v1/users", tags=["users"])
api_router.include_router(chat.router, prefix="/v1/chat", tags=["chat"])
api_router.include_router(files.router, prefix="/v1/files", tags=["files"])

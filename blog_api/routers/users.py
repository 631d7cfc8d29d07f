from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.database import get_db
from blog_api.dependencies import require_viewer
from blog_api.errors import Unauthorized
from blog_api.models import Viewer
from blog_api.schemas import LoginRequest, TokenResponse, UserCreate, UserResponse
from blog_api.services import user_service

router = APIRouter(tags=["users"])


@router.post("/users", status_code=201, response_model=UserResponse)
async def create_user(data: UserCreate, db: AsyncSession = Depends(get_db)):
    return await user_service.create_user(db, data)


@router.post("/users/login", response_model=TokenResponse)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    return TokenResponse(token=await user_service.login(db, data))


@router.get("/user", response_model=UserResponse)
async def current_user(viewer: Viewer = Depends(require_viewer), db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user(db, viewer.id)
    if user is None:
        raise Unauthorized()
    return user

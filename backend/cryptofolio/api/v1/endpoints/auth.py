from datetime import datetime, timedelta
from typing import Optional
from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from pydantic import BaseModel, EmailStr, Field

from cryptofolio.api.deps import get_current_user
from cryptofolio.core import security
from cryptofolio.core.config import settings
from cryptofolio.core.database import get_db
from cryptofolio.core.exceptions import AlreadyExistsError, AuthenticationError
from cryptofolio.models.user import User

router = APIRouter()


class Credentials(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)


class AccountOut(BaseModel):
    id: str
    email: str
    last_login: Optional[datetime] = None


class AccessToken(BaseModel):
    access_token: str
    token_type: str = "bearer"


async def _user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


def _token_for(user: User) -> AccessToken:
    ttl = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return AccessToken(access_token=security.create_access_token(user.id, expires_delta=ttl))


@router.post("/login", response_model=AccessToken)
async def login(
    form: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)
):
    """OAuth2 表单登录，username 字段填邮箱"""
    user = await _user_by_email(db, form.username)
    if user is None or not security.verify_password(form.password, user.hashed_password):
        raise AuthenticationError("Incorrect email or password")

    user.last_login = datetime.utcnow()
    await db.commit()
    return _token_for(user)


@router.post("/register", response_model=AccessToken, status_code=201)
async def register(credentials: Credentials, db: AsyncSession = Depends(get_db)):
    """注册后直接返回 token"""
    if await _user_by_email(db, credentials.email) is not None:
        raise AlreadyExistsError(f"User '{credentials.email}' already exists")

    user = User(email=credentials.email, hashed_password=security.get_password_hash(credentials.password))
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return _token_for(user)


@router.get("/me", response_model=AccountOut)
async def me(current_user: User = Depends(get_current_user)):
    return AccountOut(id=current_user.id, email=current_user.email, last_login=current_user.last_login)

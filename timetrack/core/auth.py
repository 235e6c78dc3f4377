# timetrack/core/auth.py
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession
from timetrack.database import get_db
from timetrack.models.user import User
from timetrack.core.security import decode_token

reusable_oauth2 = HTTPBearer()


def credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def load_active_user(db: AsyncSession, token: str, expected_type: str = "access") -> User:
    try:
        user_id = decode_token(token, expected_type)
    except (JWTError, ValueError):
        raise credentials_exception()

    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        raise credentials_exception()
    return user


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    token: HTTPAuthorizationCredentials = Depends(reusable_oauth2)
) -> User:
    # Owner identity for every task, time log and summary operation.
    return await load_active_user(db, token.credentials)

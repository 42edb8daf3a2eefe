"""API Dependencies - Authentication and property scoping"""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from domain.auth import User, UserInDB
from infrastructure.security import SECRET_KEY, ALGORITHM, get_password_hash
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

# Staff accounts; the real directory lives outside this service
STAFF_ACCOUNTS = {
    "admin": {
        "user_id": "123e4567-e89b-12d3-a456-426614174000",
        "full_name": "Admin User",
        "email": "admin@example.com",
        "role": "admin",
        "property_id": None,
        "password": "admin123",
    },
    "frontdesk": {
        "user_id": "123e4567-e89b-12d3-a456-426614174001",
        "full_name": "Front Desk Clerk",
        "email": "frontdesk@example.com",
        "role": "front_desk_staff",
        "property_id": "prop-demo",
        "password": "frontdesk123",
    },
}


@lru_cache(maxsize=None)
def _hashed_password(username: str) -> str:
    # bcrypt is slow; hash each account once, on first login
    return get_password_hash(STAFF_ACCOUNTS[username]["password"])


def get_user(username: str) -> Optional[UserInDB]:
    account = STAFF_ACCOUNTS.get(username)
    if account is None:
        return None
    fields = {k: v for k, v in account.items() if k != "password"}
    return UserInDB(username=username, hashed_password=_hashed_password(username), **fields)


async def get_current_user(token: str = Depends(oauth2_scheme)) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        token_data = TokenData(username=payload.get("sub"))
    except JWTError:
        raise credentials_exception
    if token_data.username is None:
        raise credentials_exception

    user = get_user(token_data.username)
    if user is None:
        raise credentials_exception
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


def require_property_access(property_id: str, user: User) -> None:
    """Staff may only act on their assigned property"""
    if not user.can_access_property(property_id):
        raise HTTPException(status_code=403, detail="Access denied - property mismatch")

"""Password hashing, bearer tokens and the current-user dependencies.

Tokens carry the username (``sub``) and the public id of the user's
organization (``org``). A token minted before the user moved to another
organization, or lost theirs, no longer authenticates."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import ValidationError
import bcrypt

from ...core.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from ...core.errors import NotFoundError
from ..organizations.models import Organization
from . import schemas, service as auth_service
from . import models

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def organization_claim(user: models.User) -> Optional[str]:
    return user.organization.public_id if user.organization else None


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    return jwt.encode({**data, "exp": expire}, SECRET_KEY, algorithm=ALGORITHM)


def create_user_token(user: models.User) -> str:
    """Bearer token for ``user``, bound to the organization they belong to now."""
    return create_access_token({"sub": user.username, "org": organization_claim(user)})


async def get_current_user(token: Annotated[str, Depends(oauth2_scheme)]) -> models.User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        token_data = schemas.TokenData(sub=payload.get("sub"), org=payload.get("org"))
    except JWTError as e:
        logger.error(f"JWT decoding error: {e}")
        raise credentials_exception
    except ValidationError as e:
        logger.error(f"Token data validation error: {e}")
        raise credentials_exception
    if token_data.sub is None:
        logger.warning("Token sub (username) is missing.")
        raise credentials_exception

    user = await auth_service.get_user_by_username(username=token_data.sub)
    if user is None:
        logger.warning(f"User not found for username: {token_data.sub}")
        raise credentials_exception
    if token_data.org != organization_claim(user):
        logger.warning(f"Token for {user.username} was issued for organization {token_data.org}")
        raise credentials_exception
    return user


async def get_current_active_user(current_user: Annotated[models.User, Depends(get_current_user)]) -> models.User:
    if not current_user.is_active:
        logger.warning(f"User {current_user.username} is inactive.")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return current_user


async def get_current_organization(
    current_user: Annotated[models.User, Depends(get_current_active_user)],
) -> Organization:
    """The organization every report of this request is partitioned by."""
    if current_user.organization is None:
        logger.info(f"User {current_user.username} has no organization")
        raise NotFoundError("Organization not found!")
    return current_user.organization

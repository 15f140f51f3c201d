"""Business logic for authentication, such as user creation and retrieval."""
from typing import Optional
from . import models


async def get_user_by_username(username: str) -> Optional[models.User]:
    """Retrieves a user by their username, with the organization loaded.

    Args:
        username: The username of the user to retrieve.

    Returns:
        The User object if found, otherwise None.
    """
    return await models.User.get_or_none(username=username).prefetch_related("organization")


async def create_user(user_in: dict, hashed_password_val: str) -> models.User:
    """Creates a new user in the database.

    Args:
        user_in: A dictionary containing the user data (excluding password),
            including the ``organization`` instance the user belongs to.
        hashed_password_val: The hashed password for the new user.

    Returns:
        The newly created User object.
    """
    return await models.User.create(**user_in, hashed_password=hashed_password_val)

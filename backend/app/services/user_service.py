import logging

from backend.app.exceptions import NotFoundError
from backend.app.schemas.users import UserCreate, UserResponse, UserUpdate
from backend.app.store import DocumentStore

logger = logging.getLogger(__name__)

USERS = "users"

async def create_or_update_user(store: DocumentStore, user_data: UserCreate) -> UserResponse:
    """Service function to record a signed-in user, creating the account on first sign-in"""
    if user_data.id:
        try:
            await store.get(USERS, user_data.id)
        except NotFoundError:
            pass
        else:
            # Refresh the profile fields from the identity provider
            await store.update(USERS, user_data.id, {
                "email": user_data.email,
                "display_name": user_data.display_name,
                "photo_url": user_data.photo_url,
            })
            return await get_user_by_id(store, user_data.id)

    # Duplicate emails surface as ConflictError from the store
    data = {
        "email": user_data.email,
        "display_name": user_data.display_name,
        "photo_url": user_data.photo_url,
    }
    if user_data.id:
        data["id"] = user_data.id
    user_id = await store.create(USERS, data)
    logger.info("Created user %s", user_id)
    return await get_user_by_id(store, user_id)

async def get_user_by_id(store: DocumentStore, user_id: str) -> UserResponse:
    """Service function to get a user by ID"""
    try:
        record = await store.get(USERS, user_id)
    except NotFoundError:
        raise NotFoundError(f"User with id {user_id} not found") from None
    return UserResponse.model_validate(record)

async def get_user_by_email(store: DocumentStore, email: str):
    """Service function to get a user by email"""
    records = await store.query(USERS, {"email": email})
    return UserResponse.model_validate(records[0]) if records else None

async def update_user(store: DocumentStore, user_id: str, user_data: UserUpdate) -> UserResponse:
    """Service function to update a user's profile fields"""
    changes = user_data.model_dump(exclude_unset=True)
    if changes:
        try:
            await store.update(USERS, user_id, changes)
        except NotFoundError:
            raise NotFoundError(f"User with id {user_id} not found") from None
    return await get_user_by_id(store, user_id)

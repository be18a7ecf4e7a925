from fastapi import APIRouter, Depends

from backend.app.schemas.users import UserCreate, UserResponse, UserUpdate
from backend.app.services.user_service import create_or_update_user, get_user_by_id, update_user
from backend.app.database import get_document_store
from backend.app.store import DocumentStore

router = APIRouter()

@router.post("/", response_model=UserResponse)
async def create_user_route(user_data: UserCreate, store: DocumentStore = Depends(get_document_store)):
    """
    Record a signed-in user.

    - Creates the account on first sign-in
    - Refreshes email, display name and photo on later sign-ins
    - Returns 409 if the email belongs to another account
    """
    return await create_or_update_user(store, user_data)

@router.get("/{user_id}", response_model=UserResponse)
async def get_user_route(user_id: str, store: DocumentStore = Depends(get_document_store)):
    """
    Get a specific user by ID.

    - Returns 404 if user not found
    """
    return await get_user_by_id(store, user_id)

@router.patch("/{user_id}", response_model=UserResponse)
async def update_user_route(user_id: str, user_data: UserUpdate, store: DocumentStore = Depends(get_document_store)):
    """
    Update a user's profile fields.

    - Couple back-references are not editable here
    - Returns 404 if user not found
    """
    return await update_user(store, user_id, user_data)

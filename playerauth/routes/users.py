"""
User routes.

GitHub code login, session resume by identity hash, and the record
accessors used by the game frontend.
"""
from fastapi import APIRouter, Depends, HTTPException, status

from playerauth.dependencies.services import get_account_service, get_login_service, http_error
from playerauth.errors import ConfigurationError, PlayerAuthError
from playerauth.schemas import HashLoginRequest, LoginRequest, UserRecord, UserRecordIn
from playerauth.sentry_config import capture_exception
from playerauth.services.login_service import LoginService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=list[UserRecord])
async def list_users(service: LoginService = Depends(get_account_service)):
    """Return every stored user record."""
    return await service.list_users()


@router.post("/login", response_model=UserRecord)
async def login(
    request: LoginRequest,
    service: LoginService = Depends(get_login_service)
):
    """
    Log in with a GitHub authorization code.

    The returned record is not saved unless PERSIST_ON_LOGIN is enabled;
    the frontend saves new users with POST /users and updates with PUT /users.
    """
    try:
        return await service.login_by_code(request.code)
    except ConfigurationError as e:
        capture_exception()
        raise http_error(e)
    except PlayerAuthError as e:
        raise http_error(e)


@router.post("/login/hash", response_model=UserRecord)
async def login_by_hash(
    request: HashLoginRequest,
    service: LoginService = Depends(get_account_service)
):
    """
    Resume a session with an identity hash.

    Unknown hashes return the empty default record, not an error.
    """
    return await service.login_by_hash(request.hash)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=UserRecord)
async def save_user(
    request: UserRecordIn,
    service: LoginService = Depends(get_account_service)
):
    """Save a new user record. 409 if the email is already stored."""
    user = request.to_record()
    try:
        await service.save_user(user)
    except PlayerAuthError as e:
        raise http_error(e)
    return user


@router.put("", response_model=UserRecord)
async def update_user(
    request: UserRecordIn,
    service: LoginService = Depends(get_account_service)
):
    """Replace the stored record for this email (delete, then insert)."""
    user = request.to_record()
    try:
        await service.update_user(user)
    except PlayerAuthError as e:
        raise http_error(e)
    return user


@router.delete("/{email}")
async def delete_user(
    email: str,
    service: LoginService = Depends(get_account_service)
):
    """Delete the record for this email."""
    removed = await service.delete_user(email)
    if not removed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No user with email {email}"
        )
    return {"status": "success", "deleted": removed}

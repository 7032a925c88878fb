# app/api/v1/routers/auth.py
from fastapi import APIRouter, Depends, Form, status

from app.api.v1.deps import get_account_service, get_token_identity
from app.services.accounts import AccountService

router = APIRouter(tags=["auth"])


@router.post("/login")
async def login(
    email: str = Form(default=""),
    password: str = Form(default=""),
    service: AccountService = Depends(get_account_service),
):
    """
    Authenticate a user and issue a bearer token.

    Args:
        email: Form field, account email
        password: Form field, plain text password

    Returns:
        dict: message, token (use as "Authorization: Bearer <token>") and the
        sanitized user profile

    Errors:
        - 400: Missing email or password
        - 401: Unknown email or wrong password (same message for both)
    """
    result = await service.login(email, password)
    return {"message": "Login successful", "token": result["token"], "user": result["user"]}


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    username: str = Form(default=""),
    email: str = Form(default=""),
    password: str = Form(default=""),
    service: AccountService = Depends(get_account_service),
):
    """
    Register a new user account.

    Errors:
        - 400: Missing username, email or password
        - 409: Email or username already registered
    """
    user = await service.sign_up(username, email, password)
    return {"message": "User created successfully", "user": user}


@router.delete("/auth/logout")
async def logout(identity: str = Depends(get_token_identity)):
    """
    Acknowledge a logout.

    Tokens are stateless, so there is nothing to invalidate server-side; the
    client discards its token. Still requires a correctly signed token.
    """
    return {"message": "Logout successful"}


@router.get("/auth/verify-token")
async def verify_token(
    identity: str = Depends(get_token_identity),
    service: AccountService = Depends(get_account_service),
):
    """
    Validate the bearer token and return the holder's profile.

    Errors:
        - 401: Missing or invalid token
        - 404: Token is valid but the account no longer exists
    """
    return await service.verify_and_fetch(identity)

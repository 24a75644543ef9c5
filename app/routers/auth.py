from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from typing import Optional
import logging

from app.config import Settings
from app.dependencies import get_settings, get_storage, get_store
from app.errors import AuthError, ConflictError, DuplicateRecordError, StoreError, ValidationError
from app.models import new_user, public_user
from app.schemas import LoginRequest
from app.security import hash_password, issue_token, verify_password
from app.storage import logo_path

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

# Login failures never say which credential was wrong.
INVALID_CREDENTIALS = "Invalid email or password"


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    company_name: Optional[str] = Form(None),
    industry: Optional[str] = Form(None),
    industry_description: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    store=Depends(get_store),
    storage=Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    if not all([name, email, password, company_name, industry, industry_description]):
        raise ValidationError("All fields are required")

    existing_user = await store.get_user_by_email(email)
    if existing_user:
        raise ConflictError("User with this email already exists")

    # A logo is optional; without one the field stays empty.
    logo_url = ""
    stored_logo = None
    if logo is not None and logo.filename:
        data = await logo.read(settings.MAX_LOGO_BYTES + 1)
        if len(data) > settings.MAX_LOGO_BYTES:
            raise ValidationError(f"Logo must be at most {settings.MAX_LOGO_BYTES} bytes")
        stored_logo = logo_path(logo.filename)
        logo_url = await storage.upload(stored_logo, data, logo.content_type)

    user = new_user(
        name=name,
        email=email,
        password_hash=hash_password(password),
        company_name=company_name,
        industry=industry,
        industry_description=industry_description,
        logo=logo_url,
    )
    try:
        await store.insert_user(user)
    except StoreError as exc:
        if stored_logo is not None:
            await storage.delete(stored_logo)
        if isinstance(exc, DuplicateRecordError):
            # lost a race with a concurrent signup for the same email
            raise ConflictError("User with this email already exists")
        raise

    logger.info(f"User {user['id']} signed up")
    return {"success": True, "data": public_user(user)}


@router.post("/login")
async def login(
    credentials: LoginRequest,
    store=Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    if not credentials.email or not credentials.password:
        raise ValidationError("Email and password are required")

    user = await store.get_user_by_email(credentials.email)
    if not user or not verify_password(credentials.password, user.get("password", "")):
        raise AuthError(INVALID_CREDENTIALS)

    token = issue_token(
        user["id"],
        user["email"],
        secret=settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        expires_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )
    return {"success": True, "token": token}

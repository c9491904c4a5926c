import logging
from datetime import timedelta

import httpx
import jwt
from fastapi import HTTPException
from firebase_admin import auth
from firebase_admin.exceptions import FirebaseError

from config import settings
from errors import BadRequestError, ConflictError, ForbiddenError, UnauthorizedError
from services import user_service
from services.store import now

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1/accounts"


def create_access_token(user: dict) -> str:
    """Sign a service token carrying the user's id, email and role."""
    payload = {
        "userId": user["id"],
        "email": user.get("email"),
        "role": user.get("role", "passenger"),
        "exp": now() + timedelta(days=settings.JWT_EXPIRES_DAYS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])


def verify_token(token: str) -> dict:
    """
    Claims for a bearer token: our own JWT first, then a Firebase ID token.

    Raises UnauthorizedError when neither accepts it.
    """
    try:
        claims = decode_access_token(token)
        return {"userId": claims["userId"], "email": claims.get("email"), "role": claims.get("role", "passenger")}
    except (jwt.PyJWTError, KeyError):
        pass

    try:
        decoded = auth.verify_id_token(token)
    except (ValueError, FirebaseError) as e:
        logger.info(f"Token rejected: {str(e)}")
        raise UnauthorizedError("Invalid or expired token")
    return {"userId": decoded["uid"], "email": decoded.get("email"), "role": decoded.get("role", "passenger")}


async def exchange_custom_token_for_id_token(custom_token):
    """Exchange Firebase custom token for an ID token"""
    if isinstance(custom_token, bytes):
        custom_token = custom_token.decode('utf-8')
    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{IDENTITY_TOOLKIT_URL}:signInWithCustomToken?key={settings.FIREBASE_API_KEY}",
                json={"token": custom_token, "returnSecureToken": True}
            )
            response.raise_for_status()
            return response.json()["idToken"]
    except httpx.HTTPStatusError as e:
        logger.error(f"Token exchange failed: Status {e.response.status_code}")
        raise HTTPException(status_code=401, detail=_identity_toolkit_message(e.response, "Authentication failed"))
    except httpx.HTTPError as e:
        logger.error(f"Unexpected error during token exchange: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Authentication error: {str(e)}")


async def verify_email_password(email, password):
    """Verify email/password credentials with Firebase Auth"""
    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{IDENTITY_TOOLKIT_URL}:signInWithPassword?key={settings.FIREBASE_API_KEY}",
                json={"email": email, "password": password, "returnSecureToken": True}
            )
            response.raise_for_status()
            return response.json()
    except httpx.HTTPStatusError as e:
        raise HTTPException(status_code=401, detail=_identity_toolkit_message(e.response, "Invalid email or password"))
    except httpx.HTTPError as e:
        logger.error(f"Authentication error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Authentication error: {str(e)}")


def _identity_toolkit_message(response: httpx.Response, default: str) -> str:
    try:
        error_data = response.json()
    except ValueError:
        return default
    return error_data.get("error", {}).get("message", default)


def create_firebase_user(email, password, first_name, last_name, phone_number):
    """Create user in Firebase Authentication"""
    try:
        return auth.create_user(
            email=email,
            password=password,
            display_name=f"{first_name} {last_name}",
            phone_number=phone_number,
        )
    except ValueError as e:
        # firebase_admin validates email, phone and password locally
        raise BadRequestError(str(e))


async def register(db, data: dict) -> dict:
    if data.get("role") == "driver" and not data.get("phoneNumber"):
        raise BadRequestError("Phone number is required for drivers")
    if user_service.find_by_email(db, data["email"]):
        raise ConflictError("User already exists with this email")
    if data.get("phoneNumber") and user_service.find_by_phone(db, data["phoneNumber"]):
        raise ConflictError("User already exists with this phone number")

    firebase_user = create_firebase_user(
        data["email"], data.get("password"), data["firstName"], data["lastName"], data.get("phoneNumber")
    )
    try:
        user = user_service.create_user(db, {
            "name": f"{data['firstName']} {data['lastName']}",
            "firstName": data["firstName"],
            "lastName": data["lastName"],
            "email": data["email"],
            "phoneNumber": data.get("phoneNumber"),
            "role": data.get("role", "passenger"),
        }, user_id=firebase_user.uid)
    except Exception:
        logger.error(f"Error saving user data to Firestore, removing auth user {firebase_user.uid}")
        try:
            auth.delete_user(firebase_user.uid)
        except FirebaseError:
            logger.error("Failed to clean up Firebase Auth user")
        raise

    custom_token = auth.create_custom_token(firebase_user.uid)
    if isinstance(custom_token, bytes):
        custom_token = custom_token.decode('utf-8')
    id_token = await exchange_custom_token_for_id_token(custom_token)

    logger.info(f"User registered: {user['id']} ({user['role']})")
    return {"user": user, "customToken": custom_token, "idToken": id_token, "token": create_access_token(user)}


def _active_user(db, user_id: str) -> dict:
    user = user_service.get_user(db, user_id)
    if not user:
        raise UnauthorizedError("User not found")
    if not user.get("isActive", True):
        raise ForbiddenError("Account is deactivated")
    return user


async def login(db, id_token: str | None = None, email: str | None = None, password: str | None = None) -> dict:
    """Log in with a Firebase ID token or with email and password."""
    if id_token:
        try:
            user_id = auth.verify_id_token(id_token)["uid"]
        except ValueError:
            raise UnauthorizedError("Invalid or expired token")
    elif email and password:
        auth_data = await verify_email_password(email, password)
        id_token = auth_data["idToken"]
        user_id = auth_data["localId"]
    else:
        raise BadRequestError("Firebase ID token is required")

    user = _active_user(db, user_id)
    logger.info(f"User logged in: {user_id}")
    return {"user": user, "token": create_access_token(user), "idToken": id_token}


def refresh(db, user_id: str) -> dict:
    user = _active_user(db, user_id)
    return {"user": user, "token": create_access_token(user)}

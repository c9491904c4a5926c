from fastapi import APIRouter, Depends, status

from dependencies import authenticate, get_db
from models import LoginRequest, RegisterRequest
from responses import envelope
from services import auth_service, user_service

router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, db=Depends(get_db)):
    result = await auth_service.register(db, request.model_dump())
    return envelope(result, "User registered successfully")


@router.post("/login")
async def login(request: LoginRequest, db=Depends(get_db)):
    result = await auth_service.login(db, request.idToken, request.email, request.password)
    return envelope(result, "Login successful")


@router.post("/refresh")
async def refresh_token(claims: dict = Depends(authenticate), db=Depends(get_db)):
    result = auth_service.refresh(db, claims["userId"])
    return envelope(result, "Token refreshed successfully")


@router.get("/me")
async def get_me(claims: dict = Depends(authenticate), db=Depends(get_db)):
    user = user_service.get_user_or_404(db, claims["userId"])
    return envelope({"user": user})

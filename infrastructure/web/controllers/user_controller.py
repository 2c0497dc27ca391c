from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from config.settings import Settings
from core.entities.user import User
from core.errors import DuplicateEmailError
from core.use_cases.user_use_cases import register_user, authenticate_user
from infrastructure.db.sqlite import SQLiteUserRepository
from infrastructure.web.dependencies import get_settings, get_user_repo
from infrastructure.web.schemas import RegisterRequest, TokenResponse, UserResponse
from infrastructure.web.security import create_access_token, get_current_user


router = APIRouter(prefix="", tags=["auth"])

# логин по email/паролю через Basic, дальше работаем с bearer токеном
basic_security = HTTPBasic()


@router.post("/register", response_model=UserResponse, status_code=201)
def register(payload: RegisterRequest, repo: SQLiteUserRepository = Depends(get_user_repo)):
    try:
        user = register_user(repo, name=payload.name, email=payload.email, password=payload.password)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return UserResponse.from_entity(user)

@router.post("/login", response_model=TokenResponse)
def login(
    credentials: HTTPBasicCredentials = Depends(basic_security),
    repo: SQLiteUserRepository = Depends(get_user_repo),
    settings: Settings = Depends(get_settings),
):
    user = authenticate_user(repo, email=credentials.username, password=credentials.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Basic"},
        )
    return TokenResponse(access_token=create_access_token(settings, user.id))

@router.get("/me", response_model=UserResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    return UserResponse.from_entity(current_user)

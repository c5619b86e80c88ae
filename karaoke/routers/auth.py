from fastapi import APIRouter

from .. import messages, schemas
from ..auth import verify_password, create_access_token
from ..exceptions import AuthenticationError

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.post("/login", response_model=schemas.LoginResponse)
def admin_login(login_data: schemas.LoginRequest):
    """Đăng nhập quản trị viên"""
    if not verify_password(login_data.password):
        raise AuthenticationError(messages.WRONG_PASSWORD)

    access_token = create_access_token(data={"role": "admin"})
    return schemas.LoginResponse(access_token=access_token)

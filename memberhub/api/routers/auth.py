"""Authentication endpoints for the admin web client."""
from fastapi import APIRouter, Depends, HTTPException, status

from memberhub.api.deps import get_account_service
from memberhub.core.security import create_access_token, get_current_account
from memberhub.domain.records import Account
from memberhub.modules.accounts import AccountDisabledError, AccountService, InvalidCredentialsError
from memberhub.schemas import LoginRequest, LoginResponse, SuccessResponse, UserInfo

router = APIRouter()


def _user_info(account: Account) -> UserInfo:
    return UserInfo(
        id=account.id,
        username=account.username,
        role=account.role,
        name=account.name,
        email=account.email,
    )


@router.post("/login", response_model=LoginResponse, summary="登录并签发令牌")
async def login(
    payload: LoginRequest,
    account_service: AccountService = Depends(get_account_service),
):
    try:
        account = await account_service.authenticate(payload.username, payload.password)
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="用户名或密码错误") from exc
    except AccountDisabledError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="账户已被禁用") from exc

    token = create_access_token(account.id, account.username, account.role)
    await account_service.record_login(account)
    return LoginResponse(token=token, user=_user_info(account))


@router.post("/logout", response_model=SuccessResponse, summary="退出登录")
async def logout():
    return SuccessResponse()


@router.get("/me", response_model=UserInfo, summary="当前登录用户")
async def me(account: Account = Depends(get_current_account)):
    return _user_info(account)

from fastapi import Depends, HTTPException, Request, status

from .permissions import Capability, capability_for_role


def get_current_user(request: Request) -> dict:
    user = request.session.get("user")
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user


def get_capability(user: dict = Depends(get_current_user)) -> Capability:
    return capability_for_role(user.get("role"))

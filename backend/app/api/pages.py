"""
Access gate for the /admin and /vendor page trees.

The front-end asks for a page path; anonymous visitors are sent to the
login page with a callback, signed-in users with the wrong role go home.
"""
from urllib.parse import urlencode
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from app.api.deps import get_current_user_optional
from app.core.config import settings
from app.models.user import User, UserRole

router = APIRouter(tags=["pages"], include_in_schema=False)

EXEMPT_PATHS = {"/admin/direct"}


def gate(request: Request, user: User | None, role: UserRole):
    path = request.url.path.rstrip("/") or "/"
    if path in EXEMPT_PATHS:
        return {"path": path}

    if user is None:
        query = urlencode({"callbackUrl": path})
        return RedirectResponse(f"{settings.LOGIN_PATH}?{query}", status_code=302)

    if user.role != role:
        return RedirectResponse("/", status_code=302)

    return {"path": path}


@router.get("/admin")
@router.get("/admin/{page:path}")
def admin_pages(request: Request, user: User | None = Depends(get_current_user_optional)):
    return gate(request, user, UserRole.ADMIN)


@router.get("/vendor")
@router.get("/vendor/{page:path}")
def vendor_pages(request: Request, user: User | None = Depends(get_current_user_optional)):
    return gate(request, user, UserRole.VENDOR)

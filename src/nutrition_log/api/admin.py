"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from nutrition_log.api.models import ClearRequest

if TYPE_CHECKING:
    from nutrition_log.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.post("/clear", dependencies=[Depends(require_admin)])
async def clear_all_data(body: ClearRequest, request: Request) -> dict[str, str]:
    """Irreversibly erase entries and profiles for every user."""
    if not body.confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Set confirm to true to erase all data.",
        )
    container: AppContainer = request.app.state.container
    await container.data_reset_service.clear_all_data(confirm=True)
    return {"status": "cleared"}

"""Analytics API router - superadmin only."""

from fastapi import APIRouter, Depends

from tenantchat.analytics.schemas import AnalyticsResponse
from tenantchat.common.security import get_staff_principal
from tenantchat.identity.principal import InternalPrincipal

router = APIRouter(tags=["analytics"])


def _get_service():
    from tenantchat.deps import get_analytics_service
    return get_analytics_service()


def _get_db():
    from tenantchat.deps import get_db
    return get_db()


@router.get("/analytics", response_model=AnalyticsResponse)
async def get_analytics(principal: InternalPrincipal = Depends(get_staff_principal)):
    from tenantchat.deps import get_visibility_policy

    get_visibility_policy().require_superadmin(principal)
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        return AnalyticsResponse(**await svc.summary(session))

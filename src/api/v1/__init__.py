"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.backup import router as backup_router
from api.v1.routes.internal import router as internal_router
from api.v1.routes.invites import invites_router, org_invites_router, user_invites_router
from api.v1.routes.keys import router as keys_router
from api.v1.routes.memberships import router as memberships_router
from api.v1.routes.orgs import members_router
from api.v1.routes.orgs import router as orgs_router
from api.v1.routes.platform_invites import router as platform_invites_router

router = APIRouter()
router.include_router(keys_router)
router.include_router(orgs_router)
router.include_router(members_router)
router.include_router(memberships_router)
router.include_router(backup_router)
router.include_router(org_invites_router)
router.include_router(invites_router)
router.include_router(user_invites_router)
router.include_router(platform_invites_router)
router.include_router(internal_router)

from fastapi import APIRouter

from . import config, contracts, settings, system, tickets, tree

router = APIRouter()
router.include_router(tree.router, prefix="/tree", tags=["tree"])
router.include_router(contracts.router, prefix="/contracts", tags=["contracts"])
router.include_router(tickets.router, prefix="/tickets", tags=["tickets"])
router.include_router(settings.router, prefix="/settings", tags=["settings"])
router.include_router(config.router, prefix="/config", tags=["config"])
router.include_router(system.router, prefix="/system", tags=["system"])

__all__ = ["router"]

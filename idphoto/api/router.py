"""ID Photo API Router.

Главный роутер API.
"""

from fastapi import APIRouter

from idphoto.api.routes import downloads, orders, payments, specs, tasks, uploads

router = APIRouter()

router.include_router(uploads.router)
router.include_router(specs.router)
router.include_router(tasks.router)
router.include_router(orders.router)
router.include_router(payments.router)
router.include_router(downloads.router)

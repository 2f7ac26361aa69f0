from fastapi import APIRouter

from rentalcert.modules.applications.router import router as applications_router
from rentalcert.modules.catalog.router import router as catalog_router
from rentalcert.modules.certifications.router import router as certifications_router
from rentalcert.modules.certifications.router import templates_router, verification_router
from rentalcert.modules.review.router import router as review_router

api_router = APIRouter()

api_router.include_router(catalog_router, prefix="/catalog", tags=["Catalog"])

api_router.include_router(applications_router, prefix="/applications", tags=["Applications"])

api_router.include_router(
    review_router,
    prefix="/admin/applications",
    tags=["Admin - Review"],
)

api_router.include_router(
    certifications_router,
    prefix="/admin/certifications",
    tags=["Admin - Certifications"],
)

api_router.include_router(
    templates_router,
    prefix="/admin/templates",
    tags=["Admin - Templates"],
)

api_router.include_router(verification_router, prefix="/verify", tags=["Verification"])

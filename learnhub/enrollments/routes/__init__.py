from learnhub.enrollments.routes.checkout import router as checkout_router
from learnhub.enrollments.routes.enrollments import router as enrollments_router
from learnhub.enrollments.routes.webhooks import router as webhooks_router

__all__ = [
    "enrollments_router",
    "checkout_router",
    "webhooks_router",
]

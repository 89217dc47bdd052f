"""API routers, one per resource."""
from . import appointments, auth, documents, messages, reviews, specializations, users

all_routers = (
    auth.router,
    users.router,
    appointments.router,
    documents.router,
    reviews.router,
    specializations.router,
    messages.router,
)

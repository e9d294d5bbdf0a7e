"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from costventures.api.routes import (
    auth, users, trips, cost_categories, costs, transactions, debts
)

api_router = APIRouter()

# Include all route modules
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(trips.router)
api_router.include_router(cost_categories.router)
api_router.include_router(costs.router)
api_router.include_router(transactions.router)
api_router.include_router(debts.router)

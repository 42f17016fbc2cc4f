from fastapi import APIRouter
from backend.app.api.v1 import users, transactions, budgets, recurring_templates, notifications

api_router = APIRouter()
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
api_router.include_router(budgets.router, prefix="/budgets", tags=["budgets"])
api_router.include_router(recurring_templates.router, prefix="/recurring-templates", tags=["recurring-templates"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])

# routers/v1/__init__.py
from fastapi import APIRouter

from . import products, conrods, production, customers, bills, lookups

api_v1 = APIRouter()
api_v1.include_router(products.router)
api_v1.include_router(conrods.router)
api_v1.include_router(production.router)
api_v1.include_router(customers.router)
api_v1.include_router(bills.router)
api_v1.include_router(lookups.lookups)

__all__ = ["api_v1"]

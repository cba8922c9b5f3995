# app/api/__init__.py
from fastapi import APIRouter

from app.api.routers import addresses, admin, auth, cart, farmer_orders, health, orders, products

API_PREFIX = "/api/v1"

api_router = APIRouter(prefix=API_PREFIX)
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(products.router)
api_router.include_router(cart.router)
api_router.include_router(orders.router)
api_router.include_router(farmer_orders.router)
api_router.include_router(admin.router)
api_router.include_router(addresses.router)

"""API路由聚合"""
from fastapi import APIRouter

from fitcalc.api.v1 import tolerance

api_router = APIRouter()

# 注册v1版本API
v1_router = APIRouter(prefix="/v1")

# 公差与配合
v1_router.include_router(tolerance.router, prefix="/tolerance", tags=["公差配合"])

api_router.include_router(v1_router)

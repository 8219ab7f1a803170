from fastapi import APIRouter
from dcim.api.v1 import short_id_pool, cables, locations

api_router = APIRouter()

# shortID池（发号、打印任务、绑定/报废）
api_router.include_router(short_id_pool.router, prefix="/shortid-pool", tags=["shortid-pool"])

# 线缆扫码连接
api_router.include_router(cables.router, prefix="/cables", tags=["cables"])

# 位置层级
api_router.include_router(locations.router, prefix="/locations", tags=["locations"])

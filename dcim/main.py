# 数据中心资产 shortID 服务 - 应用入口文件
#
import sys
from pathlib import Path

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from dotenv import load_dotenv

# 首先加载环境变量
load_dotenv()

from dcim.core.config import settings
from dcim.api.v1.routers import api_router
from dcim.core.exceptions import (
    ConflictError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    ShortIdPoolError,
)
from dcim.core.logging_config import setup_logging, get_logger
from dcim.middleware.logging_middleware import LoggingMiddleware
from dcim.schemas.base_schemas import ResponseCode

# 初始化日志
setup_logging()
logger = get_logger(__name__)

from dcim.db.session import engine, Base, SessionLocal
from dcim import models  # noqa: F401  导入所有模型
from dcim.services.short_id_pool_service import ShortIdPoolService


# 数据库初始化
def create_database_if_not_exists():
    """自动创建数据库（如果不存在），仅MySQL"""
    if settings.IS_SQLITE:
        return

    import pymysql

    try:
        # 连接MySQL服务器（不指定数据库）
        connection = pymysql.connect(
            host=settings.MYSQL_HOST,
            port=settings.MYSQL_PORT,
            user=settings.MYSQL_USER,
            password=settings.MYSQL_PASSWORD,
            charset='utf8mb4'
        )
        cursor = connection.cursor()

        # 检查数据库是否存在
        cursor.execute(f"SHOW DATABASES LIKE '{settings.MYSQL_DB}'")
        result = cursor.fetchone()

        if result:
            logger.info(f"Database '{settings.MYSQL_DB}' already exists")
        else:
            cursor.execute(
                f"CREATE DATABASE {settings.MYSQL_DB} "
                f"CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
            )
            logger.info(f"Database '{settings.MYSQL_DB}' created successfully")

        cursor.close()
        connection.close()
    except Exception as e:
        logger.warning(f"Failed to check/create database: {e}, assuming database exists")


def create_tables():
    """创建数据库表"""
    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Failed to create database tables: {e}")


def init_short_id_sequence():
    """初始化发号序列行（已存在则跳过）"""
    db = SessionLocal()
    try:
        ShortIdPoolService(db).ensure_sequence()
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to initialize shortID sequence: {e}")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    logger.info("Application starting up...")

    create_database_if_not_exists()
    create_tables()
    init_short_id_sequence()

    yield

    logger.info("Application is shutting down...")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="数据中心资产 shortID 池与线缆扫码连接服务",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,  # 使用ORJSON确保中文UTF-8编码正确
)


# =====================================================
# 全局异常处理器 - 统一响应格式
# =====================================================

# 业务异常 -> (HTTP状态码, 业务状态码)，按继承顺序匹配
ERROR_STATUS_MAPPING = [
    (NotFoundError, 404, ResponseCode.NOT_FOUND),
    (ConflictError, 409, ResponseCode.ALREADY_EXISTS),
    (InvalidStateError, 409, ResponseCode.INVALID_STATE),
    (InvalidArgumentError, 400, ResponseCode.PARAM_ERROR),
]


def error_status(exc: ShortIdPoolError):
    for error_class, status_code, code in ERROR_STATUS_MAPPING:
        if isinstance(exc, error_class):
            return status_code, code
    return 500, ResponseCode.INTERNAL_ERROR


@app.exception_handler(ShortIdPoolError)
async def short_id_pool_exception_handler(request: Request, exc: ShortIdPoolError):
    """处理业务异常：NotFound->404，Conflict/InvalidState->409，InvalidArgument->400，其他->500"""
    status_code, code = error_status(exc)
    logger.warning(
        "%s %s -> %s %s: %s",
        request.method,
        request.url.path,
        status_code,
        exc.error_type,
        exc.message,
    )
    return ORJSONResponse(
        status_code=status_code,
        content={
            "code": code,
            "data": None,
            **exc.to_dict(),
        }
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """处理请求参数验证错误，返回统一格式"""
    errors = exc.errors()
    error_messages = []
    for error in errors:
        loc = ".".join(str(x) for x in error.get("loc", []))
        msg = error.get("msg", "")
        error_messages.append(f"{loc}: {msg}")

    return ORJSONResponse(
        status_code=400,
        content={
            "code": ResponseCode.PARAM_ERROR,
            "message": f"参数验证失败: {'; '.join(error_messages)}",
            "errorType": "INVALID_ARGUMENT",
            "details": None,
            "data": None
        }
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """数据库异常：记录完整堆栈，响应中不暴露SQL细节"""
    logger.exception("%s %s -> database error: %s", request.method, request.url.path, exc.__class__.__name__)
    return ORJSONResponse(
        status_code=500,
        content={
            "code": ResponseCode.DATABASE_ERROR,
            "message": "database error",
            "errorType": "DATABASE_ERROR",
            "details": None,
            "data": None
        }
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """处理HTTP异常，返回统一格式"""
    code_mapping = {
        400: ResponseCode.PARAM_ERROR,
        404: ResponseCode.NOT_FOUND,
        405: ResponseCode.BAD_REQUEST,
        500: ResponseCode.INTERNAL_ERROR,
    }
    code = code_mapping.get(exc.status_code, ResponseCode.INTERNAL_ERROR)

    return ORJSONResponse(
        status_code=exc.status_code,
        content={
            "code": code,
            "message": str(exc.detail),
            "data": None
        }
    )


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_CREDENTIALS,
    allow_methods=settings.CORS_METHODS,
    allow_headers=settings.CORS_HEADERS,
)

# Add logging middleware
app.add_middleware(LoggingMiddleware)

# Include API router
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health")
async def health_check():
    """健康检查接口"""
    return {
        "status": "healthy",
        "service": "dcim-shortid",
        "version": settings.VERSION
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "dcim.main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=settings.WORKERS,
        reload=settings.DEBUG
    )

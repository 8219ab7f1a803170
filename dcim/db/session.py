from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from dcim.core.config import settings


def _engine_options() -> dict:
    if settings.IS_SQLITE:
        options = {
            "connect_args": {"check_same_thread": False, "timeout": 30},
            "echo": settings.DATABASE_ECHO,
        }
        # 内存库需要所有会话共用同一个连接
        if settings.SQLALCHEMY_DATABASE_URI in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options
    # 优化连接池配置，防止连接泄漏和死锁
    return {
        "pool_pre_ping": True,           # 使用前检查连接是否有效
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 3600,            # 1小时后回收连接（防止MySQL 8小时超时）
        "pool_timeout": 30,
        "echo": settings.DATABASE_ECHO,
    }


engine = create_engine(settings.SQLALCHEMY_DATABASE_URI, **_engine_options())

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# 依赖注入函数
def get_db():
    """获取数据库会话"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session, commit: bool = True):
    """
    业务事务边界

    commit=True 时由当前调用负责提交/回滚；
    commit=False 时加入调用方已开启的事务，由调用方统一提交或回滚
    """
    try:
        yield db
        if commit:
            db.commit()
    except Exception:
        if commit:
            db.rollback()
        raise

import os
import tempfile

# 测试使用内存SQLite，必须在导入 dcim 之前设置
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENABLE_LOGSTASH"] = "false"
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="dcim-test-logs-"))

import pytest
from fastapi.testclient import TestClient

from dcim import models  # noqa: F401
from dcim.db.session import Base, SessionLocal, engine
from dcim.models.location_models import Cabinet, DataCenter, Device, Panel, Port, PortStatusEnum, Room


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client():
    from dcim.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def location_factory(db):
    """构建 数据中心 -> 房间 -> 机柜 -> 设备 -> 面板 -> 端口 的完整层级"""

    def build(name: str = "sw-01", port_count: int = 4):
        dc = DataCenter(name=f"DC-{name}", location="Shanghai")
        room = Room(name=f"Room-{name}", floor="3F", data_center=dc)
        cabinet = Cabinet(name=f"CAB-{name}", position="A01", room=room)
        device = Device(name=name, cabinet=cabinet)
        panel = Panel(name=f"{name}-front", device=device)
        ports = [
            Port(number=str(i), status=PortStatusEnum.AVAILABLE, panel=panel)
            for i in range(1, port_count + 1)
        ]
        db.add_all([dc, room, cabinet, device, panel] + ports)
        db.commit()
        return {
            "data_center": dc,
            "room": room,
            "cabinet": cabinet,
            "device": device,
            "panel": panel,
            "ports": ports,
        }

    return build

#!/usr/bin/env python3
"""
数据中心资产 shortID 服务 - 数据库初始化脚本
用于创建数据库表、初始化发号序列和示例位置数据
"""

import argparse
import sys
from pathlib import Path

# 添加项目根目录到Python路径
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from dcim.db.session import engine, SessionLocal, Base
from dcim import models  # noqa: F401  导入所有模型
from dcim.models.location_models import (
    Cabinet,
    DataCenter,
    Device,
    DeviceTypeEnum,
    Panel,
    Port,
    PortStatusEnum,
    Room,
)
from dcim.services.short_id_pool_service import ShortIdPoolService


def create_tables():
    """创建数据库表"""
    print("[INFO] 正在创建数据库表...")
    Base.metadata.create_all(bind=engine)
    print("[SUCCESS] 数据库表创建完成")


def init_short_id_sequence():
    """初始化发号序列（按已有数据中的最大shortID起始）"""
    print("[INFO] 正在初始化shortID发号序列...")

    db = SessionLocal()
    try:
        ShortIdPoolService(db).ensure_sequence()
        db.commit()
        print("[SUCCESS] shortID发号序列初始化完成")
    except Exception as e:
        db.rollback()
        print(f"[ERROR] shortID发号序列初始化失败: {e}")
        raise
    finally:
        db.close()


def init_sample_locations(port_count: int = 24) -> bool:
    """初始化示例位置数据（一套完整的 数据中心->房间->机柜->设备->面板->端口），已有数据时跳过"""
    print("[INFO] 正在初始化示例位置数据...")

    db = SessionLocal()
    try:
        existing_count = db.query(DataCenter).count()
        if existing_count > 0:
            print(f"[SKIP] 数据中心数据已存在 ({existing_count} 条)，跳过初始化")
            return False

        data_center = DataCenter(name="示例数据中心", location="上海")
        room = Room(name="A栋3楼机房", floor="3F", data_center=data_center)
        cabinet = Cabinet(name="A-01", position="A01", height=42, room=room)
        device = Device(name="核心交换机-01", type=DeviceTypeEnum.SWITCH, u_position=40, u_height=1, cabinet=cabinet)
        panel = Panel(name="前面板", device=device)
        ports = [
            Port(number=str(i), label=f"GE1/0/{i}", port_type="rj45", status=PortStatusEnum.AVAILABLE, panel=panel)
            for i in range(1, port_count + 1)
        ]

        db.add_all([data_center, room, cabinet, device, panel] + ports)
        db.commit()
        print(f"[SUCCESS] 示例位置数据初始化完成 (端口 {len(ports)} 个)")
        return True
    except Exception as e:
        db.rollback()
        print(f"[ERROR] 示例位置数据初始化失败: {e}")
        raise
    finally:
        db.close()


def main(argv=None):
    """主函数"""
    parser = argparse.ArgumentParser(description="初始化数据中心资产 shortID 服务数据库")
    parser.add_argument("--with-sample", action="store_true", help="同时写入示例位置数据")
    args = parser.parse_args(argv)

    print("=" * 60)
    print("开始初始化数据库...")
    print("=" * 60)

    try:
        # 1. 创建数据库表
        create_tables()

        # 2. 初始化发号序列
        init_short_id_sequence()

        # 3. 示例数据
        if args.with_sample:
            init_sample_locations()

        print("=" * 60)
        print("[SUCCESS] 数据库初始化完成！")
        print("\n启动应用:")
        print("  python dcim/main.py")
        print("  或者: uvicorn dcim.main:app --reload")
        print("\nAPI文档:")
        print("  http://localhost:8000/docs")
        print("=" * 60)

    except Exception as e:
        print(f"[ERROR] 数据库初始化失败: {e}")
        return 1

    return 0


if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)

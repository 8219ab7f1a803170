"""
将旧版全局shortID分配表（global_short_id_allocations）合并到统一的shortID池。

规则：
- 旧表实体类型大小写混合（如 Room、CableEndpoint），按固定映射表归一化，无法识别的原样转大写并标记
- 池中没有该shortID：新建（有实体引用为 BOUND，否则为 GENERATED），并推进发号序列
- 池中记录与旧表一致：跳过
- 池中记录实体引用不同或缺失：记为冲突；池侧未绑定且旧表有引用时自动采用旧表引用，其余只报告不写入

可重复执行，第二次执行不会产生任何写入。

运行方式：
    python -m dcim.scripts.merge_global_short_id_to_pool [--dry-run]
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from dcim.constants.operation_types import OperationType
from dcim.core.logging_config import get_logger
from dcim.db.session import SessionLocal
from dcim.models.short_id_models import (
    EntityTypeEnum,
    GlobalShortIdAllocation,
    ShortIdPool,
    ShortIdStatusEnum,
)
from dcim.services.short_id_pool_service import ShortIdPoolService
from dcim.utils.log_helper import log_operation

logger = get_logger(__name__)

LEGACY_TYPE_MAP = {
    "datacenter": EntityTypeEnum.DATA_CENTER,
    "data_center": EntityTypeEnum.DATA_CENTER,
    "room": EntityTypeEnum.ROOM,
    "cabinet": EntityTypeEnum.CABINET,
    "device": EntityTypeEnum.DEVICE,
    "panel": EntityTypeEnum.PANEL,
    "port": EntityTypeEnum.PORT,
    "cable": EntityTypeEnum.CABLE,
    "cableendpoint": EntityTypeEnum.CABLE,
    "cable_endpoint": EntityTypeEnum.CABLE,
}


@dataclass
class ReconciliationReport:
    created: int = 0
    updated: int = 0
    skipped: int = 0
    conflicts: List[Dict[str, Any]] = field(default_factory=list)
    flagged_types: List[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def writes(self) -> int:
        return self.created + self.updated

    def summary(self) -> str:
        return (
            f"created={self.created} updated={self.updated} skipped={self.skipped} "
            f"conflicts={len(self.conflicts)} flagged_types={self.flagged_types}"
        )


def normalize_legacy_type(raw: Optional[str]) -> Tuple[str, bool]:
    """返回 (归一化后的类型, 是否为无法识别的类型)"""
    value = (raw or "").strip()
    mapped = LEGACY_TYPE_MAP.get(value.lower())
    if mapped:
        return mapped.value, False
    return value.upper(), True


def _entity_ref(value: Any) -> Optional[str]:
    if value is None or str(value).strip() == "":
        return None
    return str(value)


def _conflict(legacy: GlobalShortIdAllocation, legacy_type: str, record: ShortIdPool) -> Dict[str, Any]:
    return {
        "shortId": legacy.short_id,
        "legacyEntityType": legacy_type,
        "legacyEntityId": _entity_ref(legacy.entity_id),
        "poolEntityType": record.entity_type,
        "poolEntityId": record.entity_id,
        "poolStatus": record.status.value,
    }


def _merge_row(
    db: Session,
    legacy: GlobalShortIdAllocation,
    record: Optional[ShortIdPool],
    report: ReconciliationReport,
) -> Optional[int]:
    """处理一条旧表记录，新建池记录时返回其shortID"""
    legacy_type, flagged = normalize_legacy_type(legacy.entity_type)
    if flagged and legacy.entity_type not in report.flagged_types:
        report.flagged_types.append(legacy.entity_type)
    legacy_ref = _entity_ref(legacy.entity_id)

    if record is None:
        bound = legacy_ref is not None
        db.add(ShortIdPool(
            short_id=legacy.short_id,
            entity_type=legacy_type,
            entity_id=legacy_ref,
            status=ShortIdStatusEnum.BOUND if bound else ShortIdStatusEnum.GENERATED,
            bound_at=legacy.created_at if bound else None,
            created_at=legacy.created_at,
            notes="merged from global_short_id_allocations",
        ))
        report.created += 1
        return legacy.short_id

    pool_ref = _entity_ref(record.entity_id)
    if pool_ref == legacy_ref and (pool_ref is None or record.entity_type == legacy_type):
        report.skipped += 1
        return None

    # 池侧未绑定且旧表有引用：采用旧表引用
    if pool_ref is None and legacy_ref is not None and record.status != ShortIdStatusEnum.CANCELLED:
        record.status = ShortIdStatusEnum.BOUND
        record.entity_type = legacy_type
        record.entity_id = legacy_ref
        record.bound_at = legacy.created_at
        report.updated += 1
        return None

    report.conflicts.append(_conflict(legacy, legacy_type, record))
    return None


def reconcile(db: Session, dry_run: bool = False) -> ReconciliationReport:
    """执行合并，整个过程在一个事务中；dry_run 时最终回滚"""
    report = ReconciliationReport(dry_run=dry_run)
    pool = ShortIdPoolService(db)
    try:
        legacy_rows = db.query(GlobalShortIdAllocation).order_by(GlobalShortIdAllocation.short_id.asc()).all()
        existing = {
            record.short_id: record
            for record in db.query(ShortIdPool)
            .filter(ShortIdPool.short_id.in_([row.short_id for row in legacy_rows]))
            .all()
        } if legacy_rows else {}

        max_created = 0
        for legacy in legacy_rows:
            created = _merge_row(db, legacy, existing.get(legacy.short_id), report)
            if created:
                max_created = max(max_created, created)
        db.flush()

        if max_created:
            pool.advance_sequence(max_created)

        if dry_run:
            db.rollback()
        else:
            db.commit()
    except Exception:
        db.rollback()
        raise

    log_operation(
        OperationType.SHORT_ID_RECONCILE,
        GlobalShortIdAllocation.__tablename__,
        message=f"shortID合并{'（试运行）' if dry_run else ''}: {report.summary()}",
    )
    for conflict in report.conflicts:
        logger.warning(f"shortID合并冲突，需要人工处理: {conflict}")
    return report


def main(argv: Optional[List[str]] = None) -> ReconciliationReport:
    parser = argparse.ArgumentParser(description="合并旧版全局shortID分配表到shortID池")
    parser.add_argument("--dry-run", action="store_true", help="只统计不写入")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        print("开始合并 global_short_id_allocations -> short_id_pool ...")
        report = reconcile(db, dry_run=args.dry_run)
        print(f"合并完成: {report.summary()}")
        for conflict in report.conflicts:
            print(f"[冲突] {conflict}")
        return report
    finally:
        db.close()


if __name__ == "__main__":
    main()

"""
位置层级服务
数据中心/房间/机柜/设备/面板/端口的创建、按shortID查询与端口状态维护

实体创建时携带的shortID先通过 check_short_id_exists 校验，再在同一事务中绑定到shortID池
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.orm import Session

from dcim.constants.operation_types import OperationType
from dcim.core.config import settings
from dcim.core.exceptions import ConflictError, InvalidArgumentError, InvalidStateError, NotFoundError
from dcim.core.logging_config import get_logger
from dcim.db.session import transaction
from dcim.models.cable_models import CableEndpoint
from dcim.models.location_models import Cabinet, DataCenter, Device, Panel, Port, PortStatusEnum, Room
from dcim.models.short_id_models import EntityTypeEnum, ShortIdStatusEnum
from dcim.schemas.location_schemas import (
    CabinetCreate,
    DataCenterCreate,
    DeviceCreate,
    PanelCreate,
    PortBulkCreate,
    PortCreate,
    RoomCreate,
)
from dcim.services.short_id_pool_service import LOCATION_MODELS, ShortIdPoolService, ShortIdUsage, normalize_entity_type
from dcim.utils.log_helper import log_operation
from dcim.utils.short_id_formatter import ShortIdInput, parse_short_id

logger = get_logger(__name__)

# 实体类型 -> (父级外键字段, 父级模型, 子级关系属性)
ENTITY_HIERARCHY = {
    EntityTypeEnum.DATA_CENTER: (None, None, "rooms"),
    EntityTypeEnum.ROOM: ("data_center_id", DataCenter, "cabinets"),
    EntityTypeEnum.CABINET: ("room_id", Room, "devices"),
    EntityTypeEnum.DEVICE: ("cabinet_id", Cabinet, "panels"),
    EntityTypeEnum.PANEL: ("device_id", Device, "ports"),
    EntityTypeEnum.PORT: ("panel_id", Panel, "cable_endpoints"),
}

# 位置链：模型 -> (父级关系属性, 链中的键)
_CHAIN = {
    Port: ("panel", "port"),
    Panel: ("device", "panel"),
    Device: ("cabinet", "device"),
    Cabinet: ("room", "cabinet"),
    Room: ("data_center", "room"),
    DataCenter: (None, "dataCenter"),
}

# 允许手动设置的端口状态
MANUAL_PORT_STATUSES = (PortStatusEnum.AVAILABLE, PortStatusEnum.RESERVED, PortStatusEnum.FAULTY)


def node_summary(node) -> Dict[str, Any]:
    summary = {"id": node.id, "shortId": node.short_id}
    if isinstance(node, Port):
        summary.update({
            "number": node.number,
            "label": node.label,
            "portType": node.port_type,
            "status": node.status.value if node.status else None,
        })
    else:
        summary["name"] = node.name
    return summary


def build_location_chain(entity) -> Optional[Dict[str, Any]]:
    """
    构建实体的位置链：port -> panel -> device -> cabinet -> room -> dataCenter

    从传入实体开始向上逐级填充，传入 None 时返回 None
    """
    if entity is None:
        return None
    chain: Dict[str, Any] = {}
    node = entity
    while node is not None:
        parent_attr, key = _CHAIN[type(node)]
        chain[key] = node_summary(node)
        node = getattr(node, parent_attr) if parent_attr else None
    return chain


class LocationService:
    """位置层级服务"""

    def __init__(self, db: Session):
        self.db = db
        self.pool = ShortIdPoolService(db)

    def _require(self, model, entity_id: str, label: str):
        entity = self.db.query(model).filter(model.id == entity_id).first()
        if not entity:
            raise NotFoundError(f"{label} {entity_id} not found", entityId=entity_id)
        return entity

    # =====================================================
    # shortID 绑定
    # =====================================================

    def _claim_short_id(self, raw: ShortIdInput, entity_type: EntityTypeEnum, entity_id: str) -> int:
        """校验并绑定创建实体时提交的shortID（不提交事务）"""
        value = parse_short_id(raw)
        check = self.pool.check_short_id_exists(value)
        if check.used_by == ShortIdUsage.ENTITY:
            raise ConflictError(
                f"shortID {value} is already used by {check.entity_type}",
                shortId=value,
                entityType=check.entity_type,
                entityId=(check.details or {}).get("entityId"),
            )
        if check.exists and (check.details or {}).get("status") == ShortIdStatusEnum.CANCELLED.value:
            raise InvalidStateError(f"shortID {value} is cancelled", shortId=value, status=ShortIdStatusEnum.CANCELLED.value)

        if settings.SHORT_ID_ALLOW_IMPLICIT_CREATE:
            self.pool.bind_or_create_short_id(value, entity_type, entity_id, commit=False)
        else:
            self.pool.bind_short_id(value, entity_type, entity_id, commit=False)
        return value

    # =====================================================
    # 创建
    # =====================================================

    def create_entity(self, entity_type: EntityTypeEnum, data: BaseModel, operator: Optional[str] = None):
        """创建位置实体，父级必须存在；携带shortID时同一事务内完成绑定"""
        model = LOCATION_MODELS[entity_type]
        parent_field, parent_model, _ = ENTITY_HIERARCHY[entity_type]
        payload = data.model_dump(exclude={"short_id"}, exclude_none=True)

        with transaction(self.db):
            if parent_field:
                self._require(parent_model, payload[parent_field], parent_model.__tablename__)
            if model is Port:
                self._ensure_port_number_free(payload["panel_id"], payload["number"])

            entity = model(**payload)
            self.db.add(entity)
            self.db.flush()

            if data.short_id is not None:
                entity.short_id = self._claim_short_id(data.short_id, entity_type, entity.id)
                self.db.flush()

        log_operation(
            OperationType.LOCATION_CREATE,
            entity.id,
            operator=operator,
            message=f"创建{entity_type.value}: {entity.id}",
        )
        return entity

    def create_data_center(self, data: DataCenterCreate, operator: Optional[str] = None) -> DataCenter:
        return self.create_entity(EntityTypeEnum.DATA_CENTER, data, operator)

    def create_room(self, data: RoomCreate, operator: Optional[str] = None) -> Room:
        return self.create_entity(EntityTypeEnum.ROOM, data, operator)

    def create_cabinet(self, data: CabinetCreate, operator: Optional[str] = None) -> Cabinet:
        return self.create_entity(EntityTypeEnum.CABINET, data, operator)

    def create_device(self, data: DeviceCreate, operator: Optional[str] = None) -> Device:
        return self.create_entity(EntityTypeEnum.DEVICE, data, operator)

    def create_panel(self, data: PanelCreate, operator: Optional[str] = None) -> Panel:
        return self.create_entity(EntityTypeEnum.PANEL, data, operator)

    def create_port(self, data: PortCreate, operator: Optional[str] = None) -> Port:
        return self.create_entity(EntityTypeEnum.PORT, data, operator)

    def _ensure_port_number_free(self, panel_id: str, number: str) -> None:
        exists = self.db.query(Port.id).filter(Port.panel_id == panel_id, Port.number == number).first()
        if exists:
            raise ConflictError(f"port {number} already exists on panel {panel_id}", panelId=panel_id, number=number)

    def create_ports_bulk(self, panel_id: str, data: PortBulkCreate, operator: Optional[str] = None) -> List[Port]:
        """批量创建面板端口（端口号连续），任一端口号已存在则全部不创建"""
        ports: List[Port] = []
        with transaction(self.db):
            self._require(Panel, panel_id, "panel")
            for number in range(data.start, data.start + data.count):
                self._ensure_port_number_free(panel_id, str(number))
                port = Port(
                    panel_id=panel_id,
                    number=str(number),
                    label=f"{data.label_prefix}{number}" if data.label_prefix else None,
                    port_type=data.port_type,
                    status=PortStatusEnum.AVAILABLE,
                )
                self.db.add(port)
                ports.append(port)
            self.db.flush()

        log_operation(
            OperationType.LOCATION_CREATE,
            panel_id,
            operator=operator,
            message=f"面板 {panel_id} 批量创建端口 {len(ports)} 个",
        )
        return ports

    # =====================================================
    # 查询
    # =====================================================

    def get_by_short_id(self, entity_type: Union[EntityTypeEnum, str], raw: ShortIdInput) -> Tuple[Any, Optional[Dict[str, Any]]]:
        """
        按shortID查询位置实体及其位置链

        先查实体上的shortID字段，再按池中 BOUND 记录的 entity_id 回查
        """
        entity_type = normalize_entity_type(entity_type)
        if entity_type not in LOCATION_MODELS:
            raise InvalidArgumentError(f"{entity_type.value} is not a location entity", entityType=entity_type.value)
        value = parse_short_id(raw)
        model = LOCATION_MODELS[entity_type]

        entity = self.db.query(model).filter(model.short_id == value).first()
        if entity is None:
            record = self.pool.find_record(value)
            if record and record.status == ShortIdStatusEnum.BOUND and record.entity_type == entity_type.value:
                entity = self.db.query(model).filter(model.id == record.entity_id).first()
        if entity is None:
            raise NotFoundError(
                f"no {entity_type.value} bound to shortID {value}",
                shortId=value,
                entityType=entity_type.value,
            )
        return entity, build_location_chain(entity)

    # =====================================================
    # 端口状态 / 删除
    # =====================================================

    def _endpoint_count(self, port_id: str) -> int:
        return self.db.query(func.count(CableEndpoint.id)).filter(CableEndpoint.port_id == port_id).scalar() or 0

    def update_port_status(self, port_id: str, status: Union[PortStatusEnum, str], operator: Optional[str] = None) -> Port:
        """
        手动维护端口状态（AVAILABLE/RESERVED/FAULTY）

        OCCUPIED 只能由线缆连接产生；端口上有线缆端点时不允许手动修改
        """
        status = PortStatusEnum(status)
        if status not in MANUAL_PORT_STATUSES:
            raise InvalidArgumentError(f"port status {status.value} cannot be set manually", status=status.value)

        with transaction(self.db):
            port = self._require(Port, port_id, "port")
            if self._endpoint_count(port_id):
                raise InvalidStateError(
                    f"port {port_id} has cable endpoints attached",
                    portId=port_id,
                    status=port.status.value,
                )
            old_status = port.status
            port.status = status
            self.db.flush()

        log_operation(
            OperationType.PORT_STATUS_UPDATE,
            port_id,
            operator=operator,
            message=f"端口状态 {old_status.value} -> {status.value}",
        )
        return port

    def delete_entity(
        self,
        entity_type: Union[EntityTypeEnum, str],
        entity_id: str,
        reason: Optional[str] = None,
        operator: Optional[str] = None,
    ) -> None:
        """删除无下级的位置实体，并报废其绑定的shortID"""
        entity_type = normalize_entity_type(entity_type)
        if entity_type not in LOCATION_MODELS:
            raise InvalidArgumentError(f"{entity_type.value} is not a location entity", entityType=entity_type.value)
        model = LOCATION_MODELS[entity_type]
        _, _, children_attr = ENTITY_HIERARCHY[entity_type]

        with transaction(self.db):
            entity = self._require(model, entity_id, model.__tablename__)
            if getattr(entity, children_attr):
                raise InvalidStateError(
                    f"{entity_type.value} {entity_id} still has {children_attr}",
                    entityId=entity_id,
                )
            if entity.short_id is not None:
                record = self.pool.find_record(entity.short_id)
                if record and record.status == ShortIdStatusEnum.BOUND and record.entity_id == entity_id:
                    self.pool.retire_short_id(entity.short_id, entity_id, reason=reason, commit=False)
            self.db.delete(entity)
            self.db.flush()

        log_operation(
            OperationType.LOCATION_DELETE,
            entity_id,
            operator=operator,
            message=f"删除{entity_type.value}: {entity_id}",
            remark=reason,
        )

"""
位置层级 API 路由
创建数据中心/房间/机柜/设备/面板/端口（可携带shortID）、按shortID查询、端口状态维护
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dcim.db.session import get_db
from dcim.models.short_id_models import EntityTypeEnum
from dcim.schemas.base_schemas import ActionResponse
from dcim.schemas.location_schemas import (
    CabinetCreate,
    DataCenterCreate,
    DeviceCreate,
    LocationEntityResponse,
    LocationLookupResponse,
    PanelCreate,
    PortBulkCreate,
    PortBulkResponse,
    PortCreate,
    PortResponse,
    PortStatusUpdate,
    RoomCreate,
)
from dcim.services.location_service import LocationService, node_summary
from dcim.services.short_id_pool_service import normalize_entity_type
from dcim.utils.short_id_formatter import parse_short_id

router = APIRouter()


# =====================================================
# 创建
# =====================================================

@router.post("/datacenters", response_model=LocationEntityResponse, summary="创建数据中心")
def create_data_center(request: DataCenterCreate, db: Session = Depends(get_db)):
    return LocationEntityResponse.model_validate(LocationService(db).create_data_center(request))


@router.post("/rooms", response_model=LocationEntityResponse, summary="创建房间")
def create_room(request: RoomCreate, db: Session = Depends(get_db)):
    return LocationEntityResponse.model_validate(LocationService(db).create_room(request))


@router.post("/cabinets", response_model=LocationEntityResponse, summary="创建机柜")
def create_cabinet(request: CabinetCreate, db: Session = Depends(get_db)):
    return LocationEntityResponse.model_validate(LocationService(db).create_cabinet(request))


@router.post("/devices", response_model=LocationEntityResponse, summary="创建设备")
def create_device(request: DeviceCreate, db: Session = Depends(get_db)):
    return LocationEntityResponse.model_validate(LocationService(db).create_device(request))


@router.post("/panels", response_model=LocationEntityResponse, summary="创建面板")
def create_panel(request: PanelCreate, db: Session = Depends(get_db)):
    return LocationEntityResponse.model_validate(LocationService(db).create_panel(request))


@router.post("/ports", response_model=PortResponse, summary="创建端口")
def create_port(request: PortCreate, db: Session = Depends(get_db)):
    return PortResponse.model_validate(LocationService(db).create_port(request))


@router.post("/panels/{panel_id}/ports/bulk", response_model=PortBulkResponse, summary="批量创建面板端口")
def create_ports_bulk(panel_id: str, request: PortBulkCreate, db: Session = Depends(get_db)):
    ports = LocationService(db).create_ports_bulk(panel_id, request)
    return PortBulkResponse(ports=[PortResponse.model_validate(port) for port in ports])


# =====================================================
# 查询 / 维护
# =====================================================

@router.get("/by-shortid/{entity_type}/{short_id}", response_model=LocationLookupResponse, summary="按shortID查询位置实体")
def get_by_short_id(entity_type: str, short_id: str, db: Session = Depends(get_db)):
    """short_id 支持纯数字和 E-00001 显示格式"""
    entity, location = LocationService(db).get_by_short_id(entity_type, short_id)
    return LocationLookupResponse(
        entity_type=normalize_entity_type(entity_type).value,
        entity_id=entity.id,
        short_id=parse_short_id(short_id),
        entity=node_summary(entity),
        location=location,
    )


@router.put("/ports/{port_id}/status", response_model=PortResponse, summary="维护端口状态")
def update_port_status(port_id: str, request: PortStatusUpdate, db: Session = Depends(get_db)):
    return PortResponse.model_validate(LocationService(db).update_port_status(port_id, request.status))


@router.delete("/{entity_type}/{entity_id}", response_model=ActionResponse, summary="删除位置实体")
def delete_entity(
    entity_type: EntityTypeEnum,
    entity_id: str,
    reason: Optional[str] = Query(None, description="删除原因（写入shortID报废备注）"),
    db: Session = Depends(get_db),
):
    LocationService(db).delete_entity(entity_type, entity_id, reason=reason)
    return ActionResponse(message="deleted")

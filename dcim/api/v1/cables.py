"""
线缆连接 API 路由
扫码连接、按shortID查询线缆端点、断开与删除
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from dcim.db.session import get_db
from dcim.models.cable_models import Cable, CableEndpoint
from dcim.schemas.base_schemas import ActionResponse
from dcim.schemas.cable_schemas import (
    BranchCableCreateRequest,
    CableCreateRequest,
    CableDeleteRequest,
    CableEndpointResponse,
    CableResponse,
    ConnectSinglePortRequest,
    ConnectSinglePortResponse,
    EndpointsByShortIdRequest,
    EndpointsByShortIdResponse,
)
from dcim.services.cable_endpoint_resolver import CableEndpointResolver, endpoint_location
from dcim.services.connection_service import ConnectionService

router = APIRouter()


def endpoint_response(endpoint: Optional[CableEndpoint]) -> Optional[CableEndpointResponse]:
    if endpoint is None:
        return None
    response = CableEndpointResponse.model_validate(endpoint)
    response.location = endpoint_location(endpoint)
    return response


def cable_response(cable: Cable) -> CableResponse:
    response = CableResponse.model_validate(cable)
    response.endpoints = [endpoint_response(e) for e in cable.endpoints]
    return response


@router.post("/connect-single-port", response_model=ConnectSinglePortResponse, summary="单端扫码连接")
def connect_single_port(request: ConnectSinglePortRequest, db: Session = Depends(get_db)):
    """
    单端扫码连接

    - 新shortID：创建线缆（需提供type），A端接入端口
    - 已有线缆端：接入该线缆的空闲端，返回对端位置链 peerInfo
    """
    result = ConnectionService(db).connect_single_port(
        request.port_id,
        request.short_id,
        cable_type=request.type,
        label=request.label,
        length=request.length,
        color=request.color,
        notes=request.notes,
    )
    return ConnectSinglePortResponse(
        outcome=result.outcome.value,
        cable=cable_response(result.cable),
        connected_endpoint=endpoint_response(result.connected_endpoint),
        other_endpoint=endpoint_response(result.other_endpoint),
        peer_info=result.peer_info,
    )


@router.post("/create", response_model=CableResponse, summary="双端连接创建线缆")
def create_cable(request: CableCreateRequest, db: Session = Depends(get_db)):
    cable = ConnectionService(db).create_cable(
        request.port_a_id,
        request.port_b_id,
        request.short_id_a,
        request.short_id_b,
        request.type,
        label=request.label,
        length=request.length,
        color=request.color,
        notes=request.notes,
    )
    return cable_response(cable)


@router.post("/create-branch", response_model=CableResponse, summary="创建分支线缆（1xN）")
def create_branch_cable(request: BranchCableCreateRequest, db: Session = Depends(get_db)):
    cable = ConnectionService(db).create_branch_cable(
        request.port_a_id,
        request.short_id_a,
        [(branch.port_id, branch.short_id) for branch in request.branches],
        request.type,
        label=request.label,
        length=request.length,
        color=request.color,
        notes=request.notes,
    )
    return cable_response(cable)


@router.post("/endpoints-by-shortid", response_model=EndpointsByShortIdResponse, summary="按shortID查询线缆端点")
def get_endpoints_by_short_id(request: EndpointsByShortIdRequest, db: Session = Depends(get_db)):
    lookup = CableEndpointResolver(db).get_endpoints_by_short_id(request.short_id)
    return EndpointsByShortIdResponse(
        cable=cable_response(lookup.cable),
        endpoint_a=endpoint_response(lookup.endpoint_a),
        endpoint_b=endpoint_response(lookup.endpoint_b),
        endpoints=[endpoint_response(e) for e in lookup.endpoints],
    )


@router.post("/endpoints/{endpoint_id}/disconnect", response_model=CableEndpointResponse, summary="断开线缆端点")
def disconnect_endpoint(endpoint_id: str, db: Session = Depends(get_db)):
    endpoint = ConnectionService(db).disconnect_endpoint(endpoint_id)
    return endpoint_response(endpoint)


@router.get("/{cable_id}", response_model=CableResponse, summary="线缆详情")
def get_cable(cable_id: str, db: Session = Depends(get_db)):
    return cable_response(ConnectionService(db).get_cable(cable_id))


@router.delete("/{cable_id}", response_model=ActionResponse, summary="删除线缆")
def delete_cable(
    cable_id: str,
    request: Optional[CableDeleteRequest] = Body(None),
    db: Session = Depends(get_db),
):
    """删除线缆并释放端口，各端点的shortID报废（BOUND -> CANCELLED）"""
    ConnectionService(db).delete_cable(cable_id, reason=request.reason if request else None)
    return ActionResponse(message="deleted")

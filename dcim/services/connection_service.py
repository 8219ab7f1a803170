"""
线缆连接服务
扫码连接（单端/双端/分支）、断开端点、删除线缆

每个流程都在一个数据库事务中完成：shortID绑定、线缆/端点变更、端口状态变更要么全部生效，要么全部回滚
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from dcim.constants.operation_types import OperationType
from dcim.core.exceptions import ConflictError, InvalidArgumentError, InvalidStateError, NotFoundError, PortUnavailableError
from dcim.core.logging_config import get_logger
from dcim.db.session import transaction
from dcim.models.cable_models import END_TYPE_A, END_TYPE_B, Cable, CableEndpoint, CableTypeEnum, branch_end_type
from dcim.models.location_models import Port, PortStatusEnum
from dcim.models.short_id_models import EntityTypeEnum, ShortIdStatusEnum
from dcim.services.cable_endpoint_resolver import (
    CableEndpointResolver,
    ResolutionOutcome,
    endpoint_location,
    peer_endpoint,
)
from dcim.services.short_id_pool_service import ShortIdPoolService
from dcim.utils.log_helper import log_operation
from dcim.utils.short_id_formatter import ShortIdInput, parse_short_id

logger = get_logger(__name__)

DEFAULT_RETIRE_REASON = "cable deleted"


@dataclass
class SingleConnectResult:
    outcome: ResolutionOutcome
    cable: Cable
    connected_endpoint: CableEndpoint
    other_endpoint: Optional[CableEndpoint] = None
    peer_info: Optional[Dict[str, Any]] = None


def _cable_type(value: Union[CableTypeEnum, str, None]) -> CableTypeEnum:
    if isinstance(value, CableTypeEnum):
        return value
    if not value:
        raise InvalidArgumentError("cable type is required for a new cable")
    try:
        return CableTypeEnum(str(value).upper())
    except ValueError:
        raise InvalidArgumentError(f"unsupported cable type: {value}", type=value)


class ConnectionService:
    """线缆连接服务"""

    def __init__(self, db: Session):
        self.db = db
        self.pool = ShortIdPoolService(db)
        self.resolver = CableEndpointResolver(db)

    # =====================================================
    # 端口
    # =====================================================

    def _require_available_port(self, port_id: str) -> Port:
        port = self.db.query(Port).filter(Port.id == port_id).first()
        if not port:
            raise NotFoundError(f"port {port_id} not found", portId=port_id)
        if port.status != PortStatusEnum.AVAILABLE:
            raise PortUnavailableError(port_id, port.status.value)
        return port

    def _occupy_port(self, port_id: str) -> None:
        """AVAILABLE -> OCCUPIED，条件更新未命中说明端口已被并发占用"""
        updated = (
            self.db.query(Port)
            .filter(Port.id == port_id, Port.status == PortStatusEnum.AVAILABLE)
            .update({Port.status: PortStatusEnum.OCCUPIED}, synchronize_session="fetch")
        )
        if not updated:
            port = self.db.query(Port).filter(Port.id == port_id).populate_existing().first()
            if not port:
                raise NotFoundError(f"port {port_id} not found", portId=port_id)
            raise PortUnavailableError(port_id, port.status.value)

    def _release_port(self, port_id: str) -> None:
        """端口上已没有任何端点时 OCCUPIED -> AVAILABLE（RESERVED/FAULTY 保持不变）"""
        remaining = (
            self.db.query(func.count(CableEndpoint.id))
            .filter(CableEndpoint.port_id == port_id)
            .scalar()
        )
        if remaining:
            return
        self.db.query(Port).filter(
            Port.id == port_id,
            Port.status == PortStatusEnum.OCCUPIED,
        ).update({Port.status: PortStatusEnum.AVAILABLE}, synchronize_session="fetch")

    # =====================================================
    # 新线缆（双端 / 分支）
    # =====================================================

    def _validate_new_ends(self, ends: Sequence[Tuple[str, ShortIdInput]]) -> List[Tuple[str, int]]:
        """校验各端：端口存在且可用、shortID互不相同且都解析为新线缆端"""
        port_ids = [port_id for port_id, _ in ends]
        if len(set(port_ids)) != len(port_ids):
            raise InvalidArgumentError("cable ends must be connected to different ports", portIds=port_ids)

        values = [parse_short_id(raw) for _, raw in ends]
        if len(set(values)) != len(values):
            raise InvalidArgumentError("cable ends must use different shortIDs", shortIds=values)

        for port_id, value in zip(port_ids, values):
            self._require_available_port(port_id)
            resolution = self.resolver.resolve(value)
            if not resolution.is_new:
                raise ConflictError(
                    f"shortID {value} already identifies cable {resolution.cable.id}",
                    shortId=value,
                    cableId=resolution.cable.id,
                )
        return list(zip(port_ids, values))

    def _create_connected_cable(
        self,
        ends: Sequence[Tuple[str, ShortIdInput]],
        end_types: Sequence[str],
        cable_type: Union[CableTypeEnum, str],
        label: Optional[str],
        length: Optional[float],
        color: Optional[str],
        notes: Optional[str],
        operator: Optional[str],
    ) -> Cable:
        cable_type = _cable_type(cable_type)

        with transaction(self.db):
            validated = self._validate_new_ends(ends)

            cable = Cable(type=cable_type, label=label, length=length, color=color, notes=notes)
            self.db.add(cable)
            self.db.flush()

            for end_type, (port_id, value) in zip(end_types, validated):
                endpoint = CableEndpoint(cable_id=cable.id, port_id=port_id, end_type=end_type, short_id=value)
                self.db.add(endpoint)
                self.db.flush()
                self.pool.bind_or_create_short_id(value, EntityTypeEnum.CABLE, endpoint.id, commit=False, operator=operator)
                self._occupy_port(port_id)

        log_operation(
            OperationType.CABLE_CREATE,
            cable.id,
            operator=operator,
            message=f"创建线缆 {cable.id}: " + ", ".join(f"{t}={v}@{p}" for t, (p, v) in zip(end_types, validated)),
        )
        return self.get_cable(cable.id)

    def create_cable(
        self,
        port_a_id: str,
        port_b_id: str,
        short_id_a: ShortIdInput,
        short_id_b: ShortIdInput,
        cable_type: Union[CableTypeEnum, str],
        label: Optional[str] = None,
        length: Optional[float] = None,
        color: Optional[str] = None,
        notes: Optional[str] = None,
        operator: Optional[str] = None,
    ) -> Cable:
        """双端连接：两端口必须可用，两个shortID必须都是新线缆端"""
        return self._create_connected_cable(
            [(port_a_id, short_id_a), (port_b_id, short_id_b)],
            [END_TYPE_A, END_TYPE_B],
            cable_type, label, length, color, notes, operator,
        )

    def create_branch_cable(
        self,
        port_a_id: str,
        short_id_a: ShortIdInput,
        branches: Sequence[Tuple[str, ShortIdInput]],
        cable_type: Union[CableTypeEnum, str],
        label: Optional[str] = None,
        length: Optional[float] = None,
        color: Optional[str] = None,
        notes: Optional[str] = None,
        operator: Optional[str] = None,
    ) -> Cable:
        """分支线缆（1xN）：主端 A，分支端 B1..Bn"""
        if not branches:
            raise InvalidArgumentError("branch cable needs at least one branch end")
        end_types = [END_TYPE_A] + [branch_end_type(i) for i in range(1, len(branches) + 1)]
        return self._create_connected_cable(
            [(port_a_id, short_id_a)] + list(branches),
            end_types,
            cable_type, label, length, color, notes, operator,
        )

    # =====================================================
    # 单端连接
    # =====================================================

    def _continuation_endpoint(self, cable: Cable, scanned: CableEndpoint) -> CableEndpoint:
        """选择本次接入的端点：扫描端未接入则用扫描端，否则用其他未接入端，仍没有则为单端线缆补一个端点"""
        if scanned.port_id is None:
            return scanned
        for endpoint in cable.endpoints:
            if endpoint.id != scanned.id and endpoint.port_id is None:
                return endpoint
        if len(cable.endpoints) < 2:
            used = {e.end_type for e in cable.endpoints}
            end_type = END_TYPE_B if END_TYPE_B not in used else END_TYPE_A
            endpoint = CableEndpoint(cable_id=cable.id, end_type=end_type)
            self.db.add(endpoint)
            cable.endpoints.append(endpoint)
            return endpoint
        raise InvalidStateError(
            f"cable {cable.id} is already fully connected",
            cableId=cable.id,
            portIds=[e.port_id for e in cable.endpoints],
        )

    def connect_single_port(
        self,
        port_id: str,
        short_id: ShortIdInput,
        cable_type: Union[CableTypeEnum, str, None] = None,
        label: Optional[str] = None,
        length: Optional[float] = None,
        color: Optional[str] = None,
        notes: Optional[str] = None,
        operator: Optional[str] = None,
    ) -> SingleConnectResult:
        """
        单端扫码连接

        新shortID：创建线缆，A端接入该端口，B端暂不接入
        已有线缆端：把当前端口接到该线缆的空闲端，并返回对端的位置链（peerInfo）供现场核对
        """
        with transaction(self.db):
            self._require_available_port(port_id)
            resolution = self.resolver.resolve(short_id)
            value = resolution.short_id

            if resolution.is_new:
                cable = Cable(type=_cable_type(cable_type), label=label, length=length, color=color, notes=notes)
                self.db.add(cable)
                self.db.flush()

                connected = CableEndpoint(cable_id=cable.id, port_id=port_id, end_type=END_TYPE_A, short_id=value)
                other = CableEndpoint(cable_id=cable.id, port_id=None, end_type=END_TYPE_B)
                self.db.add_all([connected, other])
                self.db.flush()

                self.pool.bind_or_create_short_id(value, EntityTypeEnum.CABLE, connected.id, commit=False, operator=operator)
                self._occupy_port(port_id)
                peer_info = None
            else:
                cable = resolution.cable
                connected = self._continuation_endpoint(cable, resolution.endpoint)
                connected.port_id = port_id
                self.db.flush()

                self._occupy_port(port_id)
                other = peer_endpoint(cable, connected)
                peer_info = endpoint_location(other)

            cable_id, connected_id = cable.id, connected.id
            other_id = other.id if other else None

        log_operation(
            OperationType.CABLE_CONNECT_SINGLE,
            cable_id,
            operator=operator,
            message=f"shortID {value} ({resolution.outcome.value}) 接入端口 {port_id}",
        )

        cable = self.get_cable(cable_id)
        endpoints = {e.id: e for e in cable.endpoints}
        return SingleConnectResult(
            outcome=resolution.outcome,
            cable=cable,
            connected_endpoint=endpoints[connected_id],
            other_endpoint=endpoints.get(other_id) if other_id else None,
            peer_info=peer_info,
        )

    # =====================================================
    # 断开 / 删除 / 查询
    # =====================================================

    def get_cable(self, cable_id: str) -> Cable:
        cable = (
            self.db.query(Cable)
            .options(selectinload(Cable.endpoints).joinedload(CableEndpoint.port))
            .filter(Cable.id == cable_id)
            .first()
        )
        if not cable:
            raise NotFoundError(f"cable {cable_id} not found", cableId=cable_id)
        return cable

    def disconnect_endpoint(self, endpoint_id: str, operator: Optional[str] = None) -> CableEndpoint:
        """断开端点与端口的连接，端口上没有其他端点时恢复为 AVAILABLE"""
        with transaction(self.db):
            endpoint = self.db.query(CableEndpoint).filter(CableEndpoint.id == endpoint_id).first()
            if not endpoint:
                raise NotFoundError(f"cable endpoint {endpoint_id} not found", endpointId=endpoint_id)
            if endpoint.port_id is None:
                raise InvalidStateError(f"cable endpoint {endpoint_id} is not connected", endpointId=endpoint_id)

            port_id = endpoint.port_id
            endpoint.port_id = None
            self.db.flush()
            self._release_port(port_id)

        log_operation(
            OperationType.CABLE_DISCONNECT,
            endpoint_id,
            operator=operator,
            message=f"端点 {endpoint_id} 从端口 {port_id} 断开",
        )
        return endpoint

    def delete_cable(self, cable_id: str, reason: Optional[str] = None, operator: Optional[str] = None) -> None:
        """删除线缆：释放端口，报废各端点绑定的shortID"""
        reason = reason or DEFAULT_RETIRE_REASON
        with transaction(self.db):
            cable = self.get_cable(cable_id)
            port_ids = {e.port_id for e in cable.endpoints if e.port_id}
            retired = []

            for endpoint in cable.endpoints:
                if endpoint.short_id is None:
                    continue
                record = self.pool.find_record(endpoint.short_id)
                if record and record.status == ShortIdStatusEnum.BOUND and record.entity_id == endpoint.id:
                    self.pool.retire_short_id(endpoint.short_id, endpoint.id, reason=reason, commit=False)
                    retired.append(endpoint.short_id)

            self.db.delete(cable)
            self.db.flush()
            for port_id in port_ids:
                self._release_port(port_id)

        log_operation(
            OperationType.CABLE_DELETE,
            cable_id,
            operator=operator,
            message=f"删除线缆 {cable_id}，报废shortID {retired}",
            remark=reason,
        )

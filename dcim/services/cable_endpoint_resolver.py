"""
线缆端点解析
根据扫描到的线缆端shortID判断：新线缆端 / 已有线缆的延续 / 冲突
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from dcim.core.exceptions import ConflictError, InvalidStateError, NotFoundError, ShortIdEntityMismatchError
from dcim.core.logging_config import get_logger
from dcim.models.cable_models import END_TYPE_A, Cable, CableEndpoint
from dcim.models.short_id_models import EntityTypeEnum, ShortIdStatusEnum
from dcim.services.location_service import build_location_chain
from dcim.services.short_id_pool_service import ShortIdPoolService, ShortIdUsage
from dcim.utils.short_id_formatter import ShortIdInput, parse_short_id

logger = get_logger(__name__)


class ResolutionOutcome(str, enum.Enum):
    NEW = "new"
    CONTINUATION = "continuation"


@dataclass
class EndpointResolution:
    short_id: int
    outcome: ResolutionOutcome
    cable: Optional[Cable] = None
    endpoint: Optional[CableEndpoint] = None
    peer_endpoint: Optional[CableEndpoint] = None
    peer_info: Optional[Dict[str, Any]] = None

    @property
    def is_new(self) -> bool:
        return self.outcome == ResolutionOutcome.NEW


@dataclass
class CableEndpointLookup:
    cable: Cable
    endpoint: CableEndpoint
    endpoint_a: Optional[CableEndpoint] = None
    endpoint_b: Optional[CableEndpoint] = None
    endpoints: List[CableEndpoint] = field(default_factory=list)


def peer_endpoint(cable: Cable, endpoint: CableEndpoint) -> Optional[CableEndpoint]:
    """对端端点：优先取已接入端口的其他端点"""
    others = [e for e in cable.endpoints if e.id != endpoint.id]
    plugged = [e for e in others if e.port_id]
    if plugged:
        return plugged[0]
    return others[0] if others else None


def endpoint_location(endpoint: Optional[CableEndpoint]) -> Optional[Dict[str, Any]]:
    if endpoint is None or endpoint.port is None:
        return None
    return build_location_chain(endpoint.port)


class CableEndpointResolver:
    """线缆端点解析器"""

    def __init__(self, db: Session):
        self.db = db
        self.pool = ShortIdPoolService(db)

    def find_endpoint(self, value: int) -> Optional[CableEndpoint]:
        return (
            self.db.query(CableEndpoint)
            .options(joinedload(CableEndpoint.cable).selectinload(Cable.endpoints))
            .filter(CableEndpoint.short_id == value)
            .first()
        )

    def resolve(self, token: ShortIdInput) -> EndpointResolution:
        """
        解析扫描到的线缆端shortID

        Returns:
            NEW: 未使用或仅在池中预留，可作为新线缆端
            CONTINUATION: 已是某条线缆的端点，附带对端位置链 peer_info

        Raises:
            ShortIdFormatError: 扫描内容格式错误
            ShortIdEntityMismatchError: 已绑定到非线缆实体
            ConflictError: 池中绑定到线缆但找不到对应端点
            InvalidStateError: 已报废
        """
        value = parse_short_id(token)

        endpoint = self.find_endpoint(value)
        if endpoint:
            cable = endpoint.cable
            peer = peer_endpoint(cable, endpoint)
            return EndpointResolution(
                short_id=value,
                outcome=ResolutionOutcome.CONTINUATION,
                cable=cable,
                endpoint=endpoint,
                peer_endpoint=peer,
                peer_info=endpoint_location(peer),
            )

        check = self.pool.check_short_id_exists(value)
        if not check.exists:
            return EndpointResolution(short_id=value, outcome=ResolutionOutcome.NEW)

        if check.used_by == ShortIdUsage.POOL:
            if check.details and check.details.get("status") == ShortIdStatusEnum.CANCELLED.value:
                raise InvalidStateError(
                    f"shortID {value} is cancelled",
                    shortId=value,
                    status=ShortIdStatusEnum.CANCELLED.value,
                )
            return EndpointResolution(short_id=value, outcome=ResolutionOutcome.NEW)

        if check.entity_type != EntityTypeEnum.CABLE.value:
            raise ShortIdEntityMismatchError(value, EntityTypeEnum.CABLE.value, check.entity_type)

        logger.warning(f"shortID {value} 在池中绑定到线缆，但没有端点使用该ID")
        raise ConflictError(
            f"shortID {value} is bound to a cable endpoint that no longer exists",
            shortId=value,
            entityId=(check.details or {}).get("entityId"),
        )

    def get_endpoints_by_short_id(self, token: ShortIdInput) -> CableEndpointLookup:
        """按端点shortID查询整条线缆及各端点"""
        value = parse_short_id(token)
        endpoint = self.find_endpoint(value)
        if not endpoint:
            raise NotFoundError(f"no cable endpoint uses shortID {value}", shortId=value)

        endpoints = list(endpoint.cable.endpoints)
        endpoint_a = next((e for e in endpoints if e.end_type == END_TYPE_A), None)
        endpoint_b = next((e for e in endpoints if e.end_type != END_TYPE_A), None)
        return CableEndpointLookup(
            cable=endpoint.cable,
            endpoint=endpoint,
            endpoint_a=endpoint_a,
            endpoint_b=endpoint_b,
            endpoints=endpoints,
        )

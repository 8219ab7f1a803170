# models package
from dcim.models.short_id_models import *
from dcim.models.location_models import *
from dcim.models.cable_models import *

__all__ = [
    # shortID池
    "EntityTypeEnum",
    "ShortIdStatusEnum",
    "PrintTaskStatusEnum",
    "ShortIdSequence",
    "ShortIdPool",
    "PrintTask",
    "GlobalShortIdAllocation",
    # 位置层级
    "PortStatusEnum",
    "DeviceTypeEnum",
    "PanelTypeEnum",
    "DataCenter",
    "Room",
    "Cabinet",
    "Device",
    "Panel",
    "Port",
    # 线缆
    "CableTypeEnum",
    "Cable",
    "CableEndpoint",
]

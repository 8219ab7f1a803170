import pytest

from dcim.core.config import settings
from dcim.core.exceptions import ConflictError, InvalidArgumentError, InvalidStateError, NotFoundError
from dcim.models.location_models import DataCenter, Port, PortStatusEnum, Room
from dcim.models.short_id_models import ShortIdPool, ShortIdStatusEnum
from dcim.schemas.location_schemas import (
    DataCenterCreate,
    PanelCreate,
    PortBulkCreate,
    PortCreate,
    RoomCreate,
)
from dcim.services.connection_service import ConnectionService
from dcim.services.location_service import LocationService, build_location_chain


@pytest.fixture
def service(db):
    return LocationService(db)


def _pool_record(db, value):
    db.expire_all()
    return db.query(ShortIdPool).filter(ShortIdPool.short_id == value).first()


def test_create_with_short_id_binds_pool_record(service, db):
    service.pool.generate_short_ids(3)

    dc = service.create_data_center(DataCenterCreate(name="DC-1", short_id="E-00002"))

    assert dc.short_id == 2
    record = _pool_record(db, 2)
    assert record.status == ShortIdStatusEnum.BOUND
    assert (record.entity_type, record.entity_id) == ("DATA_CENTER", dc.id)


def test_create_without_short_id(service, db):
    dc = service.create_data_center(DataCenterCreate(name="DC-1"))
    room = service.create_room(RoomCreate(data_center_id=dc.id, name="R-101", floor="1F"))

    assert room.short_id is None
    assert room.data_center_id == dc.id
    assert db.query(ShortIdPool).count() == 0


def test_create_with_short_id_used_by_other_entity_conflicts(service, db):
    service.pool.generate_short_ids(1)
    dc = service.create_data_center(DataCenterCreate(name="DC-1", short_id=1))

    with pytest.raises(ConflictError):
        service.create_room(RoomCreate(data_center_id=dc.id, name="R-101", short_id=1))

    assert db.query(Room).count() == 0


def test_create_with_ungenerated_short_id_is_not_found(service, db):
    with pytest.raises(NotFoundError):
        service.create_data_center(DataCenterCreate(name="DC-1", short_id=50))

    assert db.query(DataCenter).count() == 0
    assert _pool_record(db, 50) is None


def test_create_with_ungenerated_short_id_when_implicit_create_enabled(service, db, monkeypatch):
    monkeypatch.setattr(settings, "SHORT_ID_ALLOW_IMPLICIT_CREATE", True)

    dc = service.create_data_center(DataCenterCreate(name="DC-1", short_id=50))

    assert dc.short_id == 50
    assert _pool_record(db, 50).status == ShortIdStatusEnum.BOUND


def test_create_with_cancelled_short_id_is_invalid_state(service):
    service.pool.generate_short_ids(1)
    service.pool.cancel_short_id(1)

    with pytest.raises(InvalidStateError):
        service.create_data_center(DataCenterCreate(name="DC-1", short_id=1))


def test_create_requires_existing_parent(service):
    with pytest.raises(NotFoundError):
        service.create_panel(PanelCreate(device_id="missing", name="front"))


def test_create_port_rejects_duplicate_number(service, location_factory):
    site = location_factory(port_count=2)

    with pytest.raises(ConflictError):
        service.create_port(PortCreate(panel_id=site["panel"].id, number="1"))

    port = service.create_port(PortCreate(panel_id=site["panel"].id, number="3", port_type="rj45"))
    assert port.status == PortStatusEnum.AVAILABLE


def test_create_ports_bulk(service, db, location_factory):
    site = location_factory(port_count=0)

    ports = service.create_ports_bulk(site["panel"].id, PortBulkCreate(count=4, start=1, label_prefix="Gi1/0/"))

    assert [p.number for p in ports] == ["1", "2", "3", "4"]
    assert ports[0].label == "Gi1/0/1"

    with pytest.raises(ConflictError):
        service.create_ports_bulk(site["panel"].id, PortBulkCreate(count=2, start=4))
    assert db.query(Port).count() == 4


def test_get_by_short_id_returns_entity_and_chain(service, db, location_factory):
    site = location_factory()
    service.pool.generate_short_ids(1)
    service.pool.bind_short_id(1, "PANEL", site["panel"].id)

    entity, chain = service.get_by_short_id("panel", "E-00001")

    assert entity.id == site["panel"].id
    assert set(chain) == {"panel", "device", "cabinet", "room", "dataCenter"}
    assert chain["device"]["name"] == "sw-01"


def test_get_by_short_id_for_entity_created_with_short_id(service, location_factory):
    site = location_factory()
    service.pool.generate_short_ids(1)
    port = service.create_port(PortCreate(panel_id=site["panel"].id, number="48", short_id=1))

    entity, chain = service.get_by_short_id("PORT", 1)

    assert entity.id == port.id
    assert chain["port"]["number"] == "48"
    assert chain["dataCenter"]["name"] == "DC-sw-01"


def test_get_by_short_id_wrong_type_or_unknown(service, location_factory):
    site = location_factory()
    service.pool.generate_short_ids(1)
    service.pool.bind_short_id(1, "PANEL", site["panel"].id)

    with pytest.raises(NotFoundError):
        service.get_by_short_id("ROOM", 1)
    with pytest.raises(InvalidArgumentError):
        service.get_by_short_id("CABLE", 1)


def test_build_location_chain_from_port(location_factory):
    site = location_factory()

    chain = build_location_chain(site["ports"][0])

    assert list(chain) == ["port", "panel", "device", "cabinet", "room", "dataCenter"]
    assert chain["port"]["status"] == "AVAILABLE"
    assert build_location_chain(None) is None


def test_update_port_status(service, db, location_factory):
    site = location_factory()
    port_id = site["ports"][0].id

    assert service.update_port_status(port_id, "RESERVED").status == PortStatusEnum.RESERVED
    assert service.update_port_status(port_id, PortStatusEnum.AVAILABLE).status == PortStatusEnum.AVAILABLE

    with pytest.raises(InvalidArgumentError):
        service.update_port_status(port_id, "OCCUPIED")


def test_update_port_status_with_cable_attached(service, db, location_factory):
    site = location_factory()
    port_id = site["ports"][0].id
    ConnectionService(db).connect_single_port(port_id, 1, cable_type="CAT6")

    with pytest.raises(InvalidStateError):
        service.update_port_status(port_id, "FAULTY")


def test_delete_entity_retires_short_id(service, db, location_factory):
    site = location_factory()
    service.pool.generate_short_ids(1)
    port_id = service.create_port(PortCreate(panel_id=site["panel"].id, number="9", short_id=1)).id

    service.delete_entity("PORT", port_id, reason="panel replaced")

    assert db.query(Port).filter(Port.id == port_id).first() is None
    record = _pool_record(db, 1)
    assert record.status == ShortIdStatusEnum.CANCELLED
    assert record.entity_id is None
    assert record.notes == "panel replaced"


def test_delete_entity_with_children_is_rejected(service, location_factory):
    site = location_factory()

    with pytest.raises(InvalidStateError):
        service.delete_entity("PANEL", site["panel"].id)
    with pytest.raises(NotFoundError):
        service.delete_entity("ROOM", "missing")

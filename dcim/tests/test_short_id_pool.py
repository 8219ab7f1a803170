import pytest

from dcim.core.exceptions import ConflictError, InvalidArgumentError, InvalidStateError, NotFoundError
from dcim.models.location_models import DataCenter, Room
from dcim.models.short_id_models import (
    EntityTypeEnum,
    GlobalShortIdAllocation,
    ShortIdPool,
    ShortIdSequence,
    ShortIdStatusEnum,
)
from dcim.services.short_id_pool_service import ShortIdPoolService, ShortIdUsage


@pytest.fixture
def pool(db):
    return ShortIdPoolService(db)


def _record(db, value):
    db.expire_all()
    return db.query(ShortIdPool).filter(ShortIdPool.short_id == value).one()


# =====================================================
# 发号
# =====================================================

def test_generate_on_empty_pool_starts_at_one(pool, db):
    assert pool.generate_short_ids(5) == [1, 2, 3, 4, 5]

    records = db.query(ShortIdPool).order_by(ShortIdPool.short_id).all()
    assert [r.status for r in records] == [ShortIdStatusEnum.GENERATED] * 5
    assert all(r.batch_no.startswith("batch_") for r in records)
    assert all(r.entity_id is None for r in records)


def test_generate_is_monotonic_and_never_reuses_cancelled_values(pool):
    first = pool.generate_short_ids(3, batch_no="b1")
    pool.cancel_short_id(first[-1], reason="label damaged")
    second = pool.generate_short_ids(2, batch_no="b2")

    assert second == [4, 5]
    assert min(second) > max(first)


@pytest.mark.parametrize("count", [0, -1, 10001])
def test_generate_rejects_out_of_range_count(pool, db, count):
    with pytest.raises(InvalidArgumentError):
        pool.generate_short_ids(count)
    assert db.query(ShortIdPool).count() == 0


def test_sequence_is_seeded_from_existing_entity_short_ids(pool, db):
    dc = DataCenter(name="DC1", short_id=40)
    db.add_all([dc, Room(name="R1", data_center=dc, short_id=57)])
    db.add(GlobalShortIdAllocation(short_id=61, entity_type="Room", entity_id="legacy-room"))
    db.commit()

    assert pool.generate_short_ids(2) == [62, 63]
    assert db.query(ShortIdSequence).one().current_value == 63


# =====================================================
# 检查
# =====================================================

def test_bind_then_check_reports_entity_usage(pool):
    pool.generate_short_ids(5)
    pool.bind_short_id(3, "PANEL", "p-1")

    result = pool.check_short_id_exists(3)
    assert result.exists is True
    assert result.used_by == ShortIdUsage.ENTITY
    assert result.entity_type == "PANEL"
    assert result.details["entityId"] == "p-1"


def test_check_distinguishes_pool_reservation_and_unused(pool):
    pool.generate_short_ids(2)

    reserved = pool.check_short_id_exists("E-00002")
    assert reserved.exists is True
    assert reserved.used_by == ShortIdUsage.POOL
    assert reserved.entity_type is None

    unused = pool.check_short_id_exists(99)
    assert unused.exists is False
    assert unused.used_by is None


def test_check_reports_cancelled_as_pool(pool):
    pool.generate_short_ids(1)
    pool.cancel_short_id(1)

    result = pool.check_short_id_exists(1)
    assert result.used_by == ShortIdUsage.POOL
    assert result.details["status"] == "CANCELLED"


def test_check_finds_legacy_short_id_written_on_entity(pool, db):
    db.add(DataCenter(name="legacy-dc", short_id=12))
    db.commit()

    result = pool.check_short_id_exists(12)
    assert result.used_by == ShortIdUsage.ENTITY
    assert result.entity_type == "DATA_CENTER"


# =====================================================
# 绑定
# =====================================================

def test_bind_is_idempotent_for_same_entity(pool, db):
    pool.generate_short_ids(1)
    pool.bind_short_id(1, EntityTypeEnum.ROOM, "r-1")
    bound_at = _record(db, 1).bound_at

    pool.bind_short_id(1, "room", "r-1")

    record = _record(db, 1)
    assert record.status == ShortIdStatusEnum.BOUND
    assert record.bound_at == bound_at


def test_bind_to_different_entity_conflicts(pool, db):
    pool.generate_short_ids(1)
    pool.bind_short_id(1, "ROOM", "r-1")

    with pytest.raises(ConflictError):
        pool.bind_short_id(1, "ROOM", "r-2")
    assert _record(db, 1).entity_id == "r-1"


def test_bind_unknown_value_is_not_found(pool):
    with pytest.raises(NotFoundError):
        pool.bind_short_id(42, "ROOM", "r-1")


def test_bind_rejects_unknown_entity_type(pool):
    pool.generate_short_ids(1)
    with pytest.raises(InvalidArgumentError):
        pool.bind_short_id(1, "WORKSTATION", "w-1")


def test_bind_printed_value(pool, db):
    task, values = pool.create_print_task("labels", 1)
    pool.bind_short_id(values[0], "PORT", "port-1")
    assert _record(db, values[0]).status == ShortIdStatusEnum.BOUND


def test_bind_or_create_registers_missing_value_and_bumps_sequence(pool, db):
    pool.generate_short_ids(2)

    record, created = pool.bind_or_create_short_id(500, "CABLE", "ep-1")
    assert created is True
    assert record.status == ShortIdStatusEnum.BOUND

    assert pool.generate_short_ids(1) == [501]


def test_bind_or_create_binds_existing_value(pool):
    pool.generate_short_ids(1)
    record, created = pool.bind_or_create_short_id(1, "CABLE", "ep-1")
    assert created is False
    assert record.entity_id == "ep-1"


# =====================================================
# 报废
# =====================================================

def test_cancel_then_bind_fails_with_invalid_state(pool, db):
    pool.generate_short_ids(9)
    pool.cancel_short_id(9, reason="label damaged")

    record = _record(db, 9)
    assert record.status == ShortIdStatusEnum.CANCELLED
    assert record.notes == "label damaged"

    with pytest.raises(InvalidStateError):
        pool.bind_short_id(9, "ROOM", "r-1")


def test_cancel_bound_value_fails(pool):
    pool.generate_short_ids(1)
    pool.bind_short_id(1, "ROOM", "r-1")
    with pytest.raises(InvalidStateError):
        pool.cancel_short_id(1)


def test_cancel_twice_fails(pool):
    pool.generate_short_ids(1)
    pool.cancel_short_id(1)
    with pytest.raises(InvalidStateError):
        pool.cancel_short_id(1)


def test_cancel_unknown_value_is_not_found(pool):
    with pytest.raises(NotFoundError):
        pool.cancel_short_id(1)


def test_retire_bound_value_clears_entity_reference(pool, db):
    pool.generate_short_ids(1)
    pool.bind_short_id(1, "ROOM", "r-1")

    with pytest.raises(ConflictError):
        pool.retire_short_id(1, "r-2")

    pool.retire_short_id(1, "r-1", reason="room removed")
    record = _record(db, 1)
    assert record.status == ShortIdStatusEnum.CANCELLED
    assert record.entity_id is None
    assert record.notes == "room removed"


# =====================================================
# 统计 / 列表
# =====================================================

def test_stats_counts_by_status_and_type(pool):
    pool.generate_short_ids(6)
    pool.bind_short_id(1, "ROOM", "r-1")
    pool.bind_short_id(2, "PANEL", "p-1")
    pool.cancel_short_id(3)
    pool.create_print_task("labels", 2)

    stats = pool.get_pool_stats()
    assert stats["total"] == 8
    assert stats["generated"] == 3
    assert stats["printed"] == 2
    assert stats["bound"] == 2
    assert stats["cancelled"] == 1
    assert stats["by_type"] == {"ROOM": 1, "PANEL": 1, "UNASSIGNED": 6}

    filtered = pool.get_pool_stats("room")
    assert filtered["total"] == 1
    assert filtered["by_type"] is None


def test_records_filter_search_and_pagination(pool):
    pool.generate_short_ids(5, batch_no="alpha")
    pool.generate_short_ids(5, batch_no="beta")
    pool.bind_short_id(7, "DEVICE", "dev-xyz")

    records, total = pool.get_pool_records(page=1, page_size=3, batch_no="beta")
    assert total == 5
    assert [r.short_id for r in records] == [10, 9, 8]

    records, total = pool.get_pool_records(search="E-00004")
    assert [r.short_id for r in records] == [4]

    records, total = pool.get_pool_records(search="xyz")
    assert [r.short_id for r in records] == [7]

    records, total = pool.get_pool_records(status=ShortIdStatusEnum.BOUND, entity_type="DEVICE")
    assert total == 1


def test_records_search_treats_wildcards_literally(pool):
    pool.generate_short_ids(3)
    pool.bind_short_id(1, "DEVICE", "dev_01")
    pool.bind_short_id(2, "DEVICE", "dev-02")
    pool.bind_short_id(3, "ROOM", "room%a")

    records, total = pool.get_pool_records(search="_")
    assert total == 1
    assert [r.short_id for r in records] == [1]

    records, _ = pool.get_pool_records(search="%")
    assert [r.short_id for r in records] == [3]


def test_records_page_size_is_capped(pool):
    with pytest.raises(InvalidArgumentError):
        pool.get_pool_records(page_size=201)

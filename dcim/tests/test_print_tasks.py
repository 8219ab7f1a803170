import io
import re

import pandas as pd
import pytest

from dcim.core.exceptions import InvalidArgumentError, InvalidStateError, NotFoundError
from dcim.models.short_id_models import PrintTask, PrintTaskStatusEnum, ShortIdPool, ShortIdStatusEnum
from dcim.services.print_task_service import EXCEL_SHEET_NAME, PrintTaskService


@pytest.fixture
def service(db):
    return PrintTaskService(db)


def test_create_print_task_allocates_printed_short_ids(service, db):
    service.pool.generate_short_ids(5)

    task, values = service.create("batch-A", 3, created_by="alice")

    assert values == [6, 7, 8]
    assert task.status == PrintTaskStatusEnum.PENDING
    assert task.count == 3

    db.expire_all()
    records = db.query(ShortIdPool).filter(ShortIdPool.short_id.in_(values)).all()
    assert {r.status for r in records} == {ShortIdStatusEnum.PRINTED}
    assert {r.print_task_id for r in records} == {task.id}
    assert {r.batch_no for r in records} == {"batch-A"}
    assert all(r.printed_at is not None for r in records)


def test_create_print_task_requires_name(service, db):
    with pytest.raises(InvalidArgumentError):
        service.create("  ", 3)
    assert db.query(PrintTask).count() == 0
    assert db.query(ShortIdPool).count() == 0


def test_complete_twice_is_invalid_state(service):
    task, _ = service.create("batch-A", 2)

    completed = service.complete(task.id, file_path="/labels/batch-A.csv")
    assert completed.status == PrintTaskStatusEnum.COMPLETED
    assert completed.completed_at is not None
    assert completed.file_path == "/labels/batch-A.csv"

    with pytest.raises(InvalidStateError):
        service.complete(task.id)


def test_complete_does_not_change_short_id_status(service, db):
    task, values = service.create("batch-A", 2)
    service.complete(task.id)

    db.expire_all()
    statuses = {r.status for r in db.query(ShortIdPool).filter(ShortIdPool.print_task_id == task.id)}
    assert statuses == {ShortIdStatusEnum.PRINTED}


def test_start_then_fail(service):
    task, _ = service.create("batch-B", 1)

    assert service.start(task.id).status == PrintTaskStatusEnum.PRINTING
    with pytest.raises(InvalidStateError):
        service.start(task.id)

    failed = service.fail(task.id, reason="printer jammed")
    assert failed.status == PrintTaskStatusEnum.FAILED
    assert failed.notes == "printer jammed"

    with pytest.raises(InvalidStateError):
        service.complete(task.id)


def test_missing_task_is_not_found(service):
    with pytest.raises(NotFoundError):
        service.complete(404)
    with pytest.raises(NotFoundError):
        service.export_csv(404)


def test_export_csv_lists_short_ids_in_order(service):
    service.pool.generate_short_ids(5)
    task, _ = service.create("batch-A", 3)

    content = service.export_csv(task.id)

    assert content.startswith(b"\xef\xbb\xbf")
    lines = content.decode("utf-8-sig").splitlines()
    assert lines[0] == "shortId,entityType,taskName,createdAt,numericId"

    rows = [line.split(",") for line in lines[1:]]
    assert [row[0] for row in rows] == ["E-00006", "E-00007", "E-00008"]
    assert [row[4] for row in rows] == ["6", "7", "8"]
    for row in rows:
        assert row[1:3] == ["MIXED", "batch-A"]
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", row[3])


def test_export_excel_workbook(service):
    task, _ = service.create("batch-X", 2)

    content = service.export_excel(task.id)

    assert content[:2] == b"PK"
    df = pd.read_excel(io.BytesIO(content), sheet_name=EXCEL_SHEET_NAME, engine="openpyxl")
    assert list(df.columns) == ["shortId", "entityType", "taskName", "createdAt", "numericId"]
    assert df["shortId"].tolist() == ["E-00001", "E-00002"]
    assert df["numericId"].tolist() == [1, 2]


def test_list_tasks_newest_first_with_counts(service):
    first, _ = service.create("first", 2)
    second, _ = service.create("second", 3)
    service.complete(first.id)

    rows, total = service.list_tasks()
    assert total == 2
    assert [(task.name, count) for task, count in rows] == [("second", 3), ("first", 2)]

    rows, total = service.list_tasks(status=PrintTaskStatusEnum.COMPLETED)
    assert total == 1
    assert rows[0][0].id == first.id

"""
并发发号/绑定测试

内存库所有会话共用一个连接，无法体现并发，这里使用独立的文件SQLite库，每个线程一个会话
"""

import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from dcim.core.exceptions import ConflictError
from dcim.db.session import Base
from dcim.models.short_id_models import ShortIdPool, ShortIdStatusEnum
from dcim.services.short_id_pool_service import ShortIdPoolService


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = factory()
    ShortIdPoolService(session).ensure_sequence()
    session.commit()
    session.close()

    yield factory
    engine.dispose()


def _run_threads(worker, count):
    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()


def test_concurrent_generate_never_duplicates(session_factory):
    results = {}
    errors = []

    def worker(index):
        session = session_factory()
        try:
            results[index] = ShortIdPoolService(session).generate_short_ids(5, batch_no=f"t{index}")
        except Exception as e:  # noqa: BLE001
            errors.append(e)
        finally:
            session.close()

    _run_threads(worker, 8)

    assert errors == []
    values = [value for batch in results.values() for value in batch]
    assert len(values) == 40
    assert sorted(values) == list(range(1, 41))
    # 每个线程拿到的是连续区间
    for batch in results.values():
        assert batch == list(range(batch[0], batch[0] + 5))


def test_concurrent_bind_has_single_winner(session_factory):
    session = session_factory()
    ShortIdPoolService(session).generate_short_ids(1)
    session.close()

    winners = []
    conflicts = []
    errors = []

    def worker(index):
        session = session_factory()
        try:
            ShortIdPoolService(session).bind_short_id(1, "ROOM", f"room-{index}")
            winners.append(index)
        except ConflictError:
            conflicts.append(index)
        except Exception as e:  # noqa: BLE001
            errors.append(e)
        finally:
            session.close()

    _run_threads(worker, 6)

    assert errors == []
    assert len(winners) == 1
    assert len(conflicts) == 5

    session = session_factory()
    record = session.query(ShortIdPool).filter(ShortIdPool.short_id == 1).one()
    assert record.status == ShortIdStatusEnum.BOUND
    assert record.entity_id == f"room-{winners[0]}"
    session.close()

from collections.abc import Callable, Generator

import pytest
from sqlalchemy import Engine

from linestart.api.deps import ServiceContainer
from linestart.core.config import CustomFieldSetting, Settings
from linestart.core.db import build_engine, init_db
from linestart.domain.scheduling.entities.job import Job
from linestart.domain.scheduling.entities.resource import Resource
from linestart.tests.utils import OPERATOR


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'linestart.db'}",
        LOG_FORMAT="console",
        CHANGEFEED_BATCH_SIZE=50,
        JOB_CUSTOM_FIELDS=[
            CustomFieldSetting(name="customer", type="string", required=True),
            CustomFieldSetting(name="due", type="date"),
            CustomFieldSetting(name="rush", type="boolean", default=False),
        ],
    )


@pytest.fixture
def engine(settings: Settings) -> Generator[Engine, None, None]:
    engine = build_engine(settings)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def container(engine: Engine, settings: Settings) -> ServiceContainer:
    return ServiceContainer.build(engine, settings)


@pytest.fixture
def drain(container: ServiceContainer) -> Callable[[], int]:
    """Run every consumer until the feed is quiet; projector writes feed back in."""

    def _drain() -> int:
        total = 0
        while True:
            processed = sum(consumer.drain() for consumer in container.consumers)
            if processed == 0:
                return total
            total += processed

    return _drain


@pytest.fixture
def resource(container: ServiceContainer) -> Resource:
    # 15 min setup at 30 units/hour: 100 units take 215 minutes
    return container.resources.create_resource(
        name="CNC Mill 3", units_per_hour=30, actor_id=OPERATOR, setup_minutes=15
    )


@pytest.fixture
def job(container: ServiceContainer) -> Job:
    return container.jobs.create_job(
        quantity=100, actor_id=OPERATOR, custom_field_values={"customer": "Acme"}
    )

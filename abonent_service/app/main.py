from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from common.eventbus.config import get_brokers
from common.eventbus.kafka import KafkaEventBus
from common.eventbus.signals import SignalBus
from common.logger import setup_logger
from common.mongo.client import close_client, get_database, ping

from .api.health import router as health_router
from .api.v1 import api_router
from .config import AppConfig, load_config
from .event_handlers import AbonentEventsForwarder
from .repositories.catalog_repository import AccessPerimeterRepository
from .repositories.composite_key_repository import (
    CompositeKeyTemplateRepository,
    UserCompositeKeyRepository,
)
from .services.key_payload_service import KeyPayloadService
from .services.key_renewal import KafkaKeyRenewalService


logger = logging.getLogger(__name__)


def build_event_bus(config: AppConfig, kafka_bus: KafkaEventBus) -> SignalBus:
    """프로세스 내부 이벤트 버스를 만들고 구독자를 등록한다.

    구독 순서가 곧 실행 순서다: 키 payload 동기화 -> Kafka 전달.
    """

    db = get_database()
    signals = SignalBus()

    KeyPayloadService(
        key_repo=UserCompositeKeyRepository(db),
        template_repo=CompositeKeyTemplateRepository(db),
        perimeter_repo=AccessPerimeterRepository(db),
        renewal_service=KafkaKeyRenewalService(kafka_bus),
        config=config.key_sync,
    ).start(signals)

    if config.forward_events:
        AbonentEventsForwarder(kafka_bus).start(signals)
    else:
        logger.info("abonent event forwarding disabled")

    return signals


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - framework hook
    """MongoDB 연결 확인, Kafka producer 와 이벤트 버스 조립."""

    config = load_config()
    await ping()

    kafka_bus = KafkaEventBus(get_brokers())
    app.state.event_bus = build_event_bus(config, kafka_bus)

    try:
        yield
    finally:
        kafka_bus.close()
        await close_client()


def create_app() -> FastAPI:
    setup_logger()
    app = FastAPI(
        title="Abonent Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(health_router, tags=["health"])
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


def main() -> None:
    import uvicorn

    port = load_config().port
    uvicorn.run(
        "abonent_service.app.main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
        access_log=False,
    )


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()

import json
import logging
import os
import sys


DEFAULT_SERVICE_NAME = "abonent-service"


class JsonFormatter(logging.Formatter):
    """한 줄에 레코드 하나씩 JSON 으로 출력한다.

    logger.info(..., extra={"company_id": ...}) 로 넘긴 식별자 중 CONTEXT_KEYS 에
    해당하는 값만 최상위 필드로 싣는다.
    """

    CONTEXT_KEYS = (
        "company_id",
        "user_id",
        "abonent_id",
        "key_id",
        "event_type",
    )

    def __init__(self, service_name: str | None = None) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")
        self._service_name = service_name

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        entry: dict[str, object] = {
            "datetime": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self._service_name:
            entry["service_name"] = self._service_name

        entry.update(
            {key: getattr(record, key) for key in self.CONTEXT_KEYS if hasattr(record, key)}
        )

        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


def _resolve_level(level: str | None) -> int:
    raw = level or os.getenv("LOG_LEVEL", "INFO")
    return getattr(logging, raw.upper(), logging.INFO)


def setup_logger(
    name: str = DEFAULT_SERVICE_NAME, level: str | None = None
) -> logging.Logger:
    """서비스 로거와 루트 로거에 JSON stdout 핸들러를 붙인다.

    - SERVICE_NAME 환경 변수가 있으면 name 대신 사용한다.
    - 여러 번 호출해도 서비스 로거의 핸들러는 하나만 유지된다.
    - app.* 모듈 로거(logging.getLogger(__name__))는 루트 로거로 전파된다.
    """

    log_level = _resolve_level(level)
    service_name = os.getenv("SERVICE_NAME", name)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JsonFormatter(service_name))

    service_logger = logging.getLogger(service_name)
    service_logger.setLevel(log_level)
    service_logger.handlers.clear()
    service_logger.addHandler(handler)
    service_logger.propagate = False

    root_logger = logging.getLogger()
    if not root_logger.handlers:
        root_logger.addHandler(handler)
        root_logger.setLevel(log_level)

    return service_logger

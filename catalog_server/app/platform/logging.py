# catalog_server/app/platform/logging.py
import os
import json
import logging
import logging.config
from contextvars import ContextVar
from datetime import datetime, timezone

# ===== Request ID =====
request_id_ctx = ContextVar("request_id", default="-")

class RequestIDFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get()
        return True

# ===== JSON Formatter =====
class JsonFormatter(logging.Formatter):
    """
    JSON 라인 출력: 로그 수집기에서 바로 파싱 가능.
    access 로그 레코드에 존재할 수 있는 필드들도 함께 포함.
    """
    EXTRA_FIELDS = (
        "http_method", "path", "status_code", "duration_ms",
        "client_ip", "user_agent", "query_string",
    )

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
                                 .isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }

        # 예외 스택
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        for k in self.EXTRA_FIELDS:
            v = getattr(record, k, None)
            if v is not None:
                payload[k] = v

        return json.dumps(payload, ensure_ascii=False)

# ===== Text Formatter (로컬 확인용) =====
TEXT_DEFAULT = "%(asctime)s %(levelname)s [%(name)s] [%(request_id)s] %(message)s"
TEXT_ACCESS = "%(asctime)s %(levelname)s [access] [%(request_id)s] %(message)s"

def _handler(formatter: str, level: str, filename: str | None = None) -> dict:
    if filename is None:
        return {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": formatter,
            "filters": ["request_id"],
        }
    return {
        "class": "logging.handlers.TimedRotatingFileHandler",
        "level": level,
        "formatter": formatter,
        "filename": filename,
        "when": "midnight",
        "backupCount": 14,
        "encoding": "utf-8",
        "filters": ["request_id"],
    }

def setup_logging(
    *,
    log_to_file: bool = False,
    log_dir: str = "/var/log/app",
    as_json: bool = True,
    level: str = "INFO",
) -> None:
    """
    - app 로그: root, uvicorn.error
    - access 로그: uvicorn.access (RequestContextMiddleware가 기록)
    - opensearch 클라이언트 로그는 WARNING 이상만
    """
    os.environ.setdefault("TZ", "UTC")

    formatters = {
        "json": {"()": JsonFormatter},
        "text_default": {"format": TEXT_DEFAULT},
        "text_access": {"format": TEXT_ACCESS},
    }

    handlers = {
        "console_app": _handler("json" if as_json else "text_default", level),
        "console_access": _handler("json" if as_json else "text_access", level),
    }
    app_handlers = ["console_app"]
    access_handlers = ["console_access"]

    if log_to_file:
        os.makedirs(log_dir, exist_ok=True)
        handlers["file_app"] = _handler(
            "json" if as_json else "text_default", level, f"{log_dir}/app.log")
        handlers["file_access"] = _handler(
            "json" if as_json else "text_access", level, f"{log_dir}/access.log")
        app_handlers.append("file_app")
        access_handlers.append("file_access")

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "request_id": {"()": RequestIDFilter}
        },
        "formatters": formatters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": app_handlers,
                "level": level,
                "propagate": False,
            },
            "uvicorn.error": {
                "handlers": app_handlers,
                "level": level,
                "propagate": False,
            },
            # 접근 로그는 별도 핸들러로 분리
            "uvicorn.access": {
                "handlers": access_handlers,
                "level": level,
                "propagate": False,
            },
            "opensearch": {
                "handlers": app_handlers,
                "level": "WARNING",
                "propagate": False,
            },
        },
    })

"""
로깅 설정

- ColoredFormatter: 로컬 개발용 한 줄 컬러 출력
- StructuredFormatter: 요청 로그를 key=value 로 펼쳐서 출력 (수집기 파싱용)
"""
import logging
import sys

# 요청 로그에서 펼쳐서 출력할 extra 필드 (출력 순서 고정)
REQUEST_FIELDS = ("request_id", "method", "path", "status_code", "process_time", "client_ip")


def _short_name(name: str) -> str:
    return name.replace("nihongo_hub.", "")


class ColoredFormatter(logging.Formatter):
    """
    색상이 적용된 로그 포매터 (터미널 출력용)
    """

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
        levelname = f"{record.levelname:8s}"
        if self.use_colors:
            levelname = f"{self.COLORS.get(record.levelname, self.RESET)}{levelname}{self.RESET}"

        line = f"{timestamp} | {levelname} | {_short_name(record.name):28s} | {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class StructuredFormatter(logging.Formatter):
    """
    구조화된 로그 포매터

    log_type 이 있는 요청 로그는 REQUEST_FIELDS 를 key=value 로 붙여서 출력
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, "%Y-%m-%dT%H:%M:%S")
        parts = [
            f"ts={timestamp}",
            f"level={record.levelname}",
            f"logger={_short_name(record.name)}",
        ]

        log_type = getattr(record, "log_type", None)
        if log_type:
            parts.append(f"event={log_type}")
            for field in REQUEST_FIELDS:
                value = getattr(record, field, None)
                if value is None:
                    continue
                if field == "process_time":
                    value = f"{value:.3f}"
                parts.append(f"{field}={value}")

        parts.append(f'msg="{record.getMessage()}"')
        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(log_level: str = "INFO", use_structured: bool = True):
    """
    로깅 설정 초기화

    Args:
        log_level: 로그 레벨 (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_structured: 구조화된 포매터 사용 여부
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # 기존 핸들러 제거 (reload 시 중복 출력 방지)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(StructuredFormatter() if use_structured else ColoredFormatter(use_colors=True))
    root_logger.addHandler(console_handler)

    # 외부 라이브러리 로거는 WARNING 이상만
    for noisy in ("uvicorn", "uvicorn.access", "sqlalchemy.engine", "aiosqlite", "asyncio", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """로거 인스턴스 가져오기 (보통 __name__ 사용)"""
    return logging.getLogger(name)

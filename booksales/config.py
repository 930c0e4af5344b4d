"""설정 모듈 — 환경 변수・상수 정의."""

import os
from pathlib import Path

from dotenv import load_dotenv

# .env 는 프로젝트 루트에 둔다
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# --- Supabase ---
SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
SUPABASE_SECRET_KEY: str = os.getenv("SUPABASE_SECRET_KEY", "")
BUCKET_NAME: str = os.getenv("BOOK_SALES_BUCKET", "book-sales-data")

# --- 정적 호스팅 (index.json + 일별 JSON) ---
BASE_URL: str = os.getenv("BOOK_SALES_BASE_URL", "").rstrip("/")
REQUEST_TIMEOUT = 15  # 초

# --- 개발용 더미 데이터 ---
USE_DUMMY_DATA: bool = _env_flag("USE_DUMMY_DATA")

# --- 스냅샷 파일 ---
FILENAME_PREFIX = "yes24_"
LIST_LIMIT = 1000

# --- 업로드 ---
UPLOAD_MAX_RETRIES = 3
UPLOAD_RETRY_DELAY = 1.0  # 초

# --- 캐시 ---
CACHE_DIR = Path(os.getenv("BOOK_SALES_CACHE_DIR", str(_PROJECT_ROOT / ".cache" / "book-sales")))
CACHE_MAX_BYTES = int(os.getenv("BOOK_SALES_CACHE_MAX_BYTES", str(5 * 1024 * 1024)))
CACHE_PREFIX = "book_sales_"
CACHE_VERSION = "v2"
CACHE_TTL_SECONDS = 48 * 60 * 60
MEMORY_CACHE_MAX_ENTRIES = 50

# --- 차트 ---
PERIODS = (7, 30, 60, 90, 120, 180, 365)
DOWNSAMPLE_THRESHOLD_DAYS = 60
# (기간 상한, 간격) — 상한을 넘는 기간은 마지막 간격을 쓴다
SAMPLING_STRIDES = ((60, 1), (120, 2), (180, 3))
SAMPLING_STRIDE_MAX = 7
MAX_CHART_POINTS = 60
BATCH_SIZE_MIN = 3
BATCH_SIZE_MAX = 10

# --- 로그 ---
LOG_DIR = _PROJECT_ROOT / "logs"

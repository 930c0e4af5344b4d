"""스냅샷 원본 소스 모듈.

일별 JSON 은 Supabase Storage 버킷(book-sales-data)에 올라가 있다.
정적 호스팅을 쓰는 경우에는 {BASE_URL}/index.json 에 파일명 목록을 둔다.

각 소스는 list_files() / download() 만 제공하며, 실패 시 예외를 그대로 던진다.
예외 처리(로그 후 빈 값 반환)는 file_index / loader 쪽 책임이다.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

import requests
from supabase import Client, create_client

from booksales import config
from booksales.dummy import DummySource
from booksales.file_index import validate_filename

logger = logging.getLogger(__name__)


class StorageSource:
    """Supabase Storage 버킷을 읽고 쓰는 소스."""

    def __init__(self, client: Client | None = None, bucket: str = config.BUCKET_NAME):
        self._client = client
        self.bucket = bucket

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = create_client(config.SUPABASE_URL, config.SUPABASE_SECRET_KEY)
        return self._client

    def _bucket(self):
        """대상 버킷을 참조한다."""
        return self.client.storage.from_(self.bucket)

    def list_files(self) -> list[str]:
        """버킷 루트의 파일명 목록을 전부 가져온다.

        한 번에 LIST_LIMIT 개씩 offset 을 늘려 가며, 모자란 페이지가 오면 끝낸다.
        """
        bucket = self._bucket()
        names: list[str] = []
        offset = 0
        while True:
            items = bucket.list(
                "",
                {
                    "limit": config.LIST_LIMIT,
                    "offset": offset,
                    "sortBy": {"column": "name", "order": "asc"},
                },
            ) or []
            names.extend(item["name"] for item in items if item.get("name"))
            if len(items) < config.LIST_LIMIT:
                return names
            offset += len(items)

    def download(self, filename: str) -> bytes:
        return self._bucket().download(filename)

    def upload(self, filename: str, data: bytes, overwrite: bool = True) -> None:
        """JSON 파일 1개를 업로드한다."""
        self._bucket().upload(
            filename,
            data,
            {"content-type": "application/json", "upsert": "true" if overwrite else "false"},
        )
        logger.info("업로드 완료: %s (%d bytes)", filename, len(data))

    def upload_snapshots(
        self,
        paths: list[Path],
        skip_existing: bool = False,
        max_retries: int = config.UPLOAD_MAX_RETRIES,
        retry_delay: float = config.UPLOAD_RETRY_DELAY,
    ) -> dict[str, list[str]]:
        """로컬 스냅샷 파일들을 버킷에 올린다.

        Args:
            paths: 업로드할 파일 경로 (파일명은 yes24_YYYY_MMDD.json 형식이어야 함)
            skip_existing: True 면 버킷에 이미 있는 파일은 건너뛴다 (False 면 덮어쓰기)
            max_retries: 파일당 최대 시도 횟수
            retry_delay: 재시도 간 대기 시간 (초)

        Returns:
            {"uploaded": [...], "skipped": [...], "failed": [...]}
        """
        summary: dict[str, list[str]] = {"uploaded": [], "skipped": [], "failed": []}
        try:
            existing = set(self.list_files())
        except Exception as e:
            logger.error("기존 파일 목록 조회 실패: %s", e)
            existing = set()

        for path in paths:
            filename = path.name
            if not validate_filename(filename):
                logger.warning("파일명 형식 불일치로 건너뜀: %s", filename)
                summary["skipped"].append(filename)
                continue
            if skip_existing and filename in existing:
                logger.info("이미 존재하여 건너뜀: %s", filename)
                summary["skipped"].append(filename)
                continue
            if not path.is_file():
                logger.warning("파일 없음: %s", path)
                summary["failed"].append(filename)
                continue

            data = path.read_bytes()
            for attempt in range(1, max_retries + 1):
                try:
                    self.upload(filename, data, overwrite=True)
                    summary["uploaded"].append(filename)
                    break
                except Exception as e:
                    if attempt == max_retries:
                        logger.error("업로드 실패: %s, error=%s", filename, e)
                        summary["failed"].append(filename)
                    else:
                        logger.warning("재시도 %d/%d: %s", attempt, max_retries, filename)
                        time.sleep(retry_delay)

        logger.info(
            "업로드 결과: 성공 %d, 건너뜀 %d, 실패 %d",
            len(summary["uploaded"]), len(summary["skipped"]), len(summary["failed"]),
        )
        return summary


class HttpSource:
    """정적 호스팅된 JSON 파일을 읽는 소스."""

    def __init__(self, base_url: str = config.BASE_URL, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def _get(self, name: str) -> requests.Response:
        resp = self.session.get(f"{self.base_url}/{name}", timeout=config.REQUEST_TIMEOUT)
        resp.raise_for_status()
        return resp

    def list_files(self) -> list[str]:
        names = self._get("index.json").json()
        if not isinstance(names, list):
            raise ValueError("index.json 은 파일명 배열이어야 합니다")
        return [str(n) for n in names]

    def download(self, filename: str) -> bytes:
        return self._get(filename).content


def make_source():
    """설정에 맞는 소스를 만든다 (더미 → 정적 호스팅 → Supabase 순)."""
    if config.USE_DUMMY_DATA:
        logger.info("더미 데이터 모드")
        return DummySource()
    if config.BASE_URL:
        return HttpSource(config.BASE_URL)
    return StorageSource()

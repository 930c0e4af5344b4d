"""개발용 더미 데이터 소스.

USE_DUMMY_DATA=true 일 때 Supabase 대신 사용한다.
같은 파일명에 대해서는 항상 같은 데이터를 돌려준다 (파일명으로 시드).
"""

from __future__ import annotations

import json
import random
from datetime import date, timedelta

from booksales.file_index import filename_for, parse_filename

PUBLISHERS = [
    "골든래빗", "한빛미디어", "위키북스", "에이콘출판", "인사이트",
    "제이펍", "길벗", "영진닷컴", "비제이퍼블릭", "프리렉",
    "한빛아카데미", "이지스퍼블리싱", "자유지성사", "생능출판", "신편컴퓨터",
]

TITLES = [
    "React 완벽 가이드", "Node.js 마스터하기", "TypeScript 실전 프로젝트",
    "Vue.js 3 개발의 모든 것", "Next.js로 배우는 풀스택 개발", "자바스크립트 딥 다이브",
    "Python 데이터 분석", "머신러닝 기초부터 응용까지", "AWS 클라우드 완벽 가이드",
    "Docker와 쿠버네티스", "GraphQL 실무 가이드", "MongoDB 완벽 가이드",
    "Redis 캐싱 전략", "Git으로 배우는 버전 관리", "Clean Code 실천법",
    "TDD 테스트 주도 개발", "RESTful API 설계", "마이크로서비스 아키텍처",
    "DevOps 실무 가이드", "Agile 프로젝트 관리", "UI/UX 디자인 패턴",
    "프론트엔드 성능 최적화", "백엔드 아키텍처 패턴", "데이터베이스 설계",
    "알고리즘과 자료구조", "컴퓨터 네트워크 기초", "운영체제의 이해",
    "소프트웨어 공학", "블록체인 개발", "AI와 딥러닝",
    "웹 보안 완벽 가이드", "모바일 앱 개발", "게임 개발 입문",
    "IoT 개발 실무", "빅데이터 처리",
]

AUTHORS = [
    ["김철수"], ["이영희", "박민수"], ["최재훈"], ["정다은", "김영수", "이민정"],
    ["홍길동"], ["장미란", "김태현"], ["오준호"], ["신미영", "박성호"],
    ["윤서준"], ["임소희", "강민석"], ["노태완"], ["유진아", "서동민"],
    ["조현우"], ["배수지", "김동화"], ["한지민"],
]

TAGS = ["프로그래밍", "개발", "IT"]

START_DATE = date(2025, 1, 1)
DAYS = 90
BOOKS_PER_DAY = 100


def generate_book_data(count: int = BOOKS_PER_DAY, seed: str | int | None = None) -> dict:
    """스냅샷 JSON 과 같은 모양의 dict 를 만든다.

    제목・저자・출판사는 book 번호로 고정하고, 순위와 판매지수만 날마다 흔들린다.
    """
    rng = random.Random(seed)
    order = list(range(count))
    rng.shuffle(order)

    data = {}
    for rank, i in enumerate(order, start=1):
        fixed = random.Random(i)
        edition = f" ({i // len(TITLES) + 1}판)" if i >= len(TITLES) else ""
        data[f"book_{i + 1}"] = {
            "title": TITLES[i % len(TITLES)] + edition,
            "author": AUTHORS[i % len(AUTHORS)],
            "publisher": PUBLISHERS[fixed.randrange(len(PUBLISHERS))],
            "rank": rank,
            "right_price": 15000 + fixed.randrange(35) * 1000,
            "sales_point": max(1, rng.randrange(1000) + (count - rank) * 10),
            "publish_date": f"{2020 + fixed.randrange(4)}-{fixed.randrange(12) + 1:02d}-{fixed.randrange(28) + 1:02d}",
            "url": f"https://www.yes24.com/Product/Goods/{100000000 + i}",
            "fake_isbn": 9780000000000 + i,
            "page": 200 + fixed.randrange(400),
            "tags": TAGS[: fixed.randrange(3) + 1],
        }
    return data


class DummySource:
    """START_DATE 부터 DAYS 일치 파일을 흉내 내는 소스."""

    def __init__(self, start: date = START_DATE, days: int = DAYS, books_per_day: int = BOOKS_PER_DAY):
        self.start = start
        self.days = days
        self.books_per_day = books_per_day

    def list_files(self) -> list[str]:
        return [filename_for(self.start + timedelta(days=i)) for i in range(self.days)]

    def download(self, filename: str) -> bytes:
        if parse_filename(filename) is None:
            raise FileNotFoundError(filename)
        data = generate_book_data(self.books_per_day, seed=filename)
        return json.dumps(data, ensure_ascii=False).encode("utf-8")

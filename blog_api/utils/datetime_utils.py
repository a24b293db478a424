# blog_api/utils/datetime_utils.py
"""
게시글/댓글/좋아요 타임스탬프 처리를 위한 공용 시간 유틸리티 모듈

- 백엔드의 모든 시각은 UTC timezone-aware datetime으로 통일합니다.
- Firestore 저장/조회 시 중첩 dict/list 내부의 datetime까지 재귀적으로 변환합니다.
"""

import logging
from datetime import datetime, date, time, timezone
from typing import Any, Optional, Union
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)


class DateTimeUtils:
    """시간 처리를 위한 정적 메서드 모음"""

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def ensure_utc(dt: datetime) -> datetime:
        """timezone-naive이면 UTC로 간주하고, aware이면 UTC로 변환합니다."""
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        ISO 포맷 문자열을 UTC datetime으로 파싱합니다.

        지원 포맷:
        - 2024-01-15T10:30:00Z
        - 2024-01-15T10:30:00+09:00
        - 2024-01-15T10:30:00
        """
        if not iso_string:
            raise ValueError("빈 문자열은 파싱할 수 없습니다")
        try:
            dt = dateutil_parser.isoparse(iso_string)
        except (ValueError, OverflowError) as e:
            logger.error(f"ISO datetime 파싱 실패: {iso_string} - {e}")
            raise ValueError(f"잘못된 ISO 날짜 형식입니다: {iso_string}")
        return DateTimeUtils.ensure_utc(dt)

    @staticmethod
    def coerce(value: Union[str, datetime, None]) -> Optional[datetime]:
        """저장소에서 읽은 값(문자열, Timestamp, datetime)을 UTC datetime으로 맞춥니다."""
        if value is None:
            return None
        if isinstance(value, str):
            return DateTimeUtils.parse_iso_datetime(value)
        if isinstance(value, datetime):
            return DateTimeUtils.ensure_utc(value)
        if hasattr(value, 'timestamp'):
            return datetime.fromtimestamp(value.timestamp(), tz=timezone.utc)
        raise ValueError(f"datetime으로 변환할 수 없는 값입니다: {value!r}")

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """datetime 객체를 'Z' 접미사의 ISO 문자열로 변환"""
        return DateTimeUtils.ensure_utc(dt).isoformat().replace('+00:00', 'Z')

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """
        Firestore 저장을 위해 객체의 날짜/시간 필드를 변환합니다.
        - date -> 자정(UTC) datetime
        - naive datetime -> UTC datetime
        - dict/list 는 재귀적으로 처리
        """
        if isinstance(obj, datetime):
            return DateTimeUtils.ensure_utc(obj)
        if isinstance(obj, date):
            return datetime.combine(obj, time.min).replace(tzinfo=timezone.utc)
        if isinstance(obj, dict):
            return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [DateTimeUtils.for_firestore(item) for item in obj]
        return obj

    @staticmethod
    def from_firestore(obj: Any) -> Any:
        """Firestore에서 읽은 데이터의 Timestamp/datetime을 UTC datetime으로 되돌립니다."""
        if isinstance(obj, datetime):
            return DateTimeUtils.ensure_utc(obj)
        if isinstance(obj, dict):
            return {k: DateTimeUtils.from_firestore(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [DateTimeUtils.from_firestore(item) for item in obj]
        if hasattr(obj, 'timestamp') and callable(obj.timestamp):
            return datetime.fromtimestamp(obj.timestamp(), tz=timezone.utc)
        return obj


# 편의 함수들
def now() -> datetime:
    return DateTimeUtils.now()

def to_iso(dt: datetime) -> str:
    return DateTimeUtils.to_iso_string(dt)

def for_firestore(obj: Any) -> Any:
    """Firestore 저장용 변환"""
    return DateTimeUtils.for_firestore(obj)

def from_firestore(obj: Any) -> Any:
    """Firestore 읽기용 변환"""
    return DateTimeUtils.from_firestore(obj)

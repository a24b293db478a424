# blog_api/core/responses.py
from typing import Any, Dict, Optional

from flask import jsonify


def success_response(data: Optional[Dict[str, Any]] = None, message: Optional[str] = None,
                     status_code: int = 200, **extra):
    """
    성공 응답 봉투를 만듭니다.
    extra로 count, total, pagination 등 목록 조회용 필드를 함께 넘길 수 있습니다.
    """
    body: Dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    for key in ("count", "total", "pagination"):
        if key in extra and extra[key] is not None:
            body[key] = extra[key]
    if data is not None:
        body["data"] = data
    return jsonify(body), status_code


def list_response(result, key: str, items):
    """ListResult를 목록 응답 봉투로 변환합니다."""
    return success_response(
        {key: items},
        count=result.count,
        total=result.total,
        pagination=result.pagination,
    )

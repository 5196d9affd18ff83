"""卡密 CSV 내보내기 포맷터"""

from datetime import datetime
from typing import Any, Iterable, List, Optional

CODE_EXPORT_HEADERS = ["卡密", "测试类型", "报告级别", "批次", "是否已用", "创建时间"]


def _quote(value: Any) -> str:
    text = "" if value is None else str(value)
    return '"' + text.replace('"', '""') + '"'


def _format_time(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def format_csv(rows: Iterable[List[Any]]) -> str:
    """모든 셀을 큰따옴표로 감싸고 콤마/줄바꿈으로 연결"""
    return "\n".join(",".join(_quote(cell) for cell in row) for row in rows)


def build_codes_csv(codes: Iterable[Any]) -> str:
    """리딤 코드 목록을 CSV 문자열로 변환

    Args:
        codes: code, test_slug, report_level, batch_name, is_used, created_at
            속성을 가진 객체 목록

    Returns:
        str: 헤더(따옴표 없음)와 데이터 행(모든 셀 따옴표)을 줄바꿈으로 연결한 CSV 본문
    """
    rows: List[List[Any]] = []
    for item in codes:
        rows.append(
            [
                item.code,
                item.test_slug or "",
                "完整版" if item.report_level == "full" else "基础版",
                item.batch_name or "",
                "是" if item.is_used else "否",
                _format_time(item.created_at),
            ]
        )
    header = ",".join(CODE_EXPORT_HEADERS)
    if not rows:
        return header
    return header + "\n" + format_csv(rows)

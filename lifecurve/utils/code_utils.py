"""
卡密(리딤 코드) 형식 유틸리티

- 형식: LC-XXXX-XXXX-XXXX (대문자 영숫자 4자리 x 3)
- 생성 시 혼동되는 문자(I, L, O, 0, 1)는 제외한 문자 집합을 사용
"""

import re
import secrets
from typing import Iterable, List, Set

CODE_PREFIX = "LC"
CODE_CHARSET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
CODE_PATTERN = re.compile(r"^LC-[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}$")

MIN_BATCH_SIZE = 1
MAX_BATCH_SIZE = 10000


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def is_valid_code(code: str) -> bool:
    return bool(CODE_PATTERN.match(code))


def _random_group(length: int = 4) -> str:
    return "".join(secrets.choice(CODE_CHARSET) for _ in range(length))


def generate_code() -> str:
    return "-".join([CODE_PREFIX, _random_group(), _random_group(), _random_group()])


def generate_unique_codes(count: int, existing: Iterable[str] = ()) -> List[str]:
    """배치 내에서도, 기존 코드와도 겹치지 않는 코드 목록 생성"""
    seen: Set[str] = set(existing)
    codes: List[str] = []
    while len(codes) < count:
        code = generate_code()
        if code in seen:
            continue
        seen.add(code)
        codes.append(code)
    return codes

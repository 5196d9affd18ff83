"""
결과 캐시 키 생성 유틸리티

동일한 (기기, 출생 정보, 곡선 모드, 유료 여부) 조합은 항상 같은 키를 만든다.
키 형식: v1_{8자리 hex 해시}_{입력 문자열 길이}

해시는 암호학적 해시가 아니라 문자 코드 누적(h * 31 + c)을 32비트 부호 있는
정수로 잘라내는 방식이다. 웹 클라이언트가 만든 키와 호환되도록 문자 단위는
UTF-16 코드 유닛을 사용한다.
"""

from typing import List, Union

CACHE_KEY_VERSION = "v1"


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _utf16_units(text: str) -> List[int]:
    encoded = text.encode("utf-16-le")
    return [
        int.from_bytes(encoded[i : i + 2], "little") for i in range(0, len(encoded), 2)
    ]


def rolling_hash(text: str) -> int:
    """문자열의 32비트 부호 있는 rolling hash"""
    h = 0
    for unit in _utf16_units(text):
        h = _to_int32((h << 5) - h + unit)
    return h


def build_fingerprint(
    device_id: str,
    name: str,
    year: Union[int, str],
    month: Union[int, str],
    day: Union[int, str],
    hour: Union[int, str],
    gender: str,
    is_lunar: bool,
    curve_mode: str,
    is_paid: bool,
) -> str:
    parts = [
        device_id,
        name,
        str(year),
        str(month),
        str(day),
        str(hour),
        gender,
        "lunar" if is_lunar else "solar",
        curve_mode,
        "paid" if is_paid else "free",
    ]
    return "|".join(parts)


def generate_result_cache_key(
    device_id: str,
    name: str,
    year: Union[int, str],
    month: Union[int, str],
    day: Union[int, str],
    hour: Union[int, str],
    gender: str,
    is_lunar: bool,
    curve_mode: str,
    is_paid: bool,
) -> str:
    """결과 캐시 키 생성

    Args:
        device_id: 기기 식별자
        name: 이름
        year, month, day, hour: 출생 일시
        gender: 성별
        is_lunar: 음력 여부
        curve_mode: 곡선 모드 (life / wealth)
        is_paid: 유료 결과 여부

    Returns:
        str: v1_xxxxxxxx_n 형식의 캐시 키
    """
    fingerprint = build_fingerprint(
        device_id, name, year, month, day, hour, gender, is_lunar, curve_mode, is_paid
    )
    digest = format(abs(rolling_hash(fingerprint)), "08x")
    return f"{CACHE_KEY_VERSION}_{digest}_{len(_utf16_units(fingerprint))}"

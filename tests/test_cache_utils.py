import re

from lifecurve.utils.cache_utils import (
    build_fingerprint,
    generate_result_cache_key,
    rolling_hash,
)

KEY_PATTERN = re.compile(r"^v1_[0-9a-f]{8,}_\d+$")


def _key(**overrides):
    params = dict(
        device_id="dev-1",
        name="张三",
        year=1990,
        month=5,
        day=20,
        hour=8,
        gender="male",
        is_lunar=False,
        curve_mode="life",
        is_paid=False,
    )
    params.update(overrides)
    return generate_result_cache_key(**params)


class TestRollingHash:
    """rolling hash 테스트"""

    def test_single_and_double_char(self):
        assert rolling_hash("") == 0
        assert rolling_hash("a") == 97
        assert rolling_hash("ab") == 97 * 31 + 98

    def test_wraps_to_signed_32bit(self):
        value = rolling_hash("x" * 200)
        assert -(2**31) <= value < 2**31

    def test_counts_utf16_code_units(self):
        # 서로게이트 쌍은 두 개의 코드 유닛으로 누적
        assert rolling_hash("😀") == 0xD83D * 31 + 0xDE00


class TestResultCacheKey:
    """결과 캐시 키 테스트"""

    def test_single_char_fingerprint(self):
        # "a" 한 글자 입력은 v1_00000061_1
        digest = format(abs(rolling_hash("a")), "08x")
        assert f"v1_{digest}_1" == "v1_00000061_1"

    def test_fingerprint_layout(self):
        fingerprint = build_fingerprint(
            "dev-1", "张三", 1990, 5, 20, 8, "male", True, "wealth", True
        )
        assert fingerprint == "dev-1|张三|1990|5|20|8|male|lunar|wealth|paid"

    def test_key_is_deterministic(self):
        assert _key() == _key()
        assert KEY_PATTERN.match(_key())

    def test_key_suffix_is_fingerprint_length(self):
        fingerprint = "dev-1|张三|1990|5|20|8|male|solar|life|free"
        assert _key().endswith(f"_{len(fingerprint)}")

    def test_inputs_change_key(self):
        base = _key()
        assert _key(is_paid=True) != base
        assert _key(curve_mode="wealth") != base
        assert _key(is_lunar=True) != base
        assert _key(device_id="dev-2") != base

    def test_int_and_str_birth_fields_match(self):
        assert _key(year="1990", month="5") == _key()

from datetime import datetime
from types import SimpleNamespace

from lifecurve.utils.code_utils import (
    CODE_CHARSET,
    generate_code,
    generate_unique_codes,
    is_valid_code,
    normalize_code,
)
from lifecurve.utils.csv_utils import CODE_EXPORT_HEADERS, build_codes_csv, format_csv


class TestCodeFormat:
    """卡密 형식 테스트"""

    def test_normalize_trims_and_uppercases(self):
        assert normalize_code("  lc-abcd-efgh-jkmn ") == "LC-ABCD-EFGH-JKMN"
        assert normalize_code(None) == ""

    def test_valid_codes(self):
        assert is_valid_code("LC-ABCD-2345-WXYZ")
        assert is_valid_code("LC-0000-1111-IIII")

    def test_invalid_codes(self):
        assert not is_valid_code("lc-abcd-efgh-jkmn")
        assert not is_valid_code("LC-ABC-EFGH-JKMN")
        assert not is_valid_code("XX-ABCD-EFGH-JKMN")
        assert not is_valid_code("LC-ABCD-EFGH-JKMN-")
        assert not is_valid_code("")

    def test_generated_code_uses_unambiguous_charset(self):
        for _ in range(50):
            code = generate_code()
            assert is_valid_code(code)
            for ch in code.replace("LC-", "").replace("-", ""):
                assert ch in CODE_CHARSET

    def test_unique_codes_skip_existing(self):
        existing = {generate_code() for _ in range(10)}
        codes = generate_unique_codes(200, existing=existing)
        assert len(codes) == 200
        assert len(set(codes)) == 200
        assert not set(codes) & existing


class TestCodesCsv:
    """CSV 내보내기 포맷 테스트"""

    def test_every_cell_is_quoted(self):
        assert format_csv([["a", 'say "hi"', None]]) == '"a","say ""hi""",""'

    def test_rows_joined_by_newline(self):
        assert format_csv([["a"], ["b"]]) == '"a"\n"b"'

    def test_build_codes_csv(self):
        created = datetime(2025, 1, 2, 3, 4, 5)
        codes = [
            SimpleNamespace(
                code="LC-AAAA-BBBB-CCCC",
                test_slug="bazi",
                report_level="full",
                batch_name="b1",
                is_used=True,
                created_at=created,
            ),
            SimpleNamespace(
                code="LC-DDDD-EEEE-FFFF",
                test_slug=None,
                report_level="basic",
                batch_name=None,
                is_used=False,
                created_at=None,
            ),
        ]

        lines = build_codes_csv(codes).split("\n")

        assert lines[0] == "卡密,测试类型,报告级别,批次,是否已用,创建时间"
        assert lines[1] == (
            f'"LC-AAAA-BBBB-CCCC","bazi","完整版","b1","是","{created.isoformat()}"'
        )
        assert lines[2] == '"LC-DDDD-EEEE-FFFF","","基础版","","否",""'

    def test_empty_export_is_header_only(self):
        assert build_codes_csv([]) == ",".join(CODE_EXPORT_HEADERS)

"""
Unit tests for reference code and survey token minting.
"""

import re
from datetime import datetime, timedelta, timezone

import pytest

from services.feedback.identifiers import (
    mint_reference_code,
    mint_survey_token,
    normalize_reference_code,
)

pytestmark = pytest.mark.unit

REFERENCE_CODE_PATTERN = re.compile(r"^FB-\d{8}-[A-Z0-9]{5}$")


class TestReferenceCode:
    def test_format(self):
        """Test reference code matches FB-YYYYMMDD-XXXXX"""
        code = mint_reference_code()
        assert REFERENCE_CODE_PATTERN.match(code)

    def test_uses_utc_date(self):
        """Test reference code uses the UTC date"""
        # 23:30 at UTC-05:00 is already the next day in UTC
        local = datetime(2024, 3, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        code = mint_reference_code(local)
        assert code.startswith("FB-20240302-")

    def test_naive_datetime_taken_as_utc(self):
        """Test naive datetime is taken as UTC"""
        code = mint_reference_code(datetime(2023, 12, 31, 23, 59))
        assert code.startswith("FB-20231231-")

    def test_suffix_varies(self):
        """Test suffix varies between codes"""
        codes = {mint_reference_code() for _ in range(50)}
        assert len(codes) > 1

    def test_normalize_for_lookup(self):
        """Test normalize for lookup"""
        assert normalize_reference_code("  fb-20240101-ab12c ") == "FB-20240101-AB12C"


class TestSurveyToken:
    def test_is_32_hex_chars(self):
        """Test survey token is 32 hex characters"""
        token = mint_survey_token()
        assert re.fullmatch(r"[0-9a-f]{32}", token)

    def test_tokens_are_unique(self):
        """Test tokens are unique"""
        tokens = {mint_survey_token() for _ in range(1000)}
        assert len(tokens) == 1000

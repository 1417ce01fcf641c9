"""
Tests for referral code format and links.

Codes are 8 characters drawn from uppercase letters and digits without the
look-alikes I, O, 0 and 1. Lookups are case-insensitive.

Covers:
- Candidate length and alphabet
- Normalization
- Link format
- Collision rate of random candidates
"""

from referral_ledger.config.business_constants import (
    REFERRAL_CODE_ALPHABET,
    REFERRAL_CODE_LENGTH,
)
from referral_ledger.services.referral.code_registry import (
    build_referral_link,
    generate_candidate,
    normalize_code,
)


class TestCodeCandidates:
    """Test random code candidates."""

    def test_candidate_length(self):
        """Candidate has the configured length."""
        assert len(generate_candidate()) == REFERRAL_CODE_LENGTH == 8

    def test_candidate_alphabet(self):
        """Candidate only uses unambiguous characters."""
        for _ in range(200):
            code = generate_candidate()
            assert set(code) <= set(REFERRAL_CODE_ALPHABET)

    def test_alphabet_excludes_lookalikes(self):
        """I, O, 0 and 1 are never used."""
        for char in "IO01":
            assert char not in REFERRAL_CODE_ALPHABET
        assert len(REFERRAL_CODE_ALPHABET) == 32

    def test_candidate_is_uppercase(self):
        """Letters in a candidate are uppercase."""
        code = generate_candidate()
        assert code == code.upper()

    def test_custom_length_and_alphabet(self):
        """Length and alphabet can be overridden."""
        code = generate_candidate(length=4, alphabet="AB")
        assert len(code) == 4
        assert set(code) <= {"A", "B"}

    def test_candidates_rarely_collide(self):
        """10,000 candidates are practically all distinct."""
        codes = {generate_candidate() for _ in range(10_000)}

        # 32^8 space: a single collision is already very unlikely
        assert len(codes) >= 9_998


class TestNormalizeCode:
    """Test code normalization."""

    def test_uppercases(self):
        """Lowercase input is uppercased."""
        assert normalize_code("abc23456") == "ABC23456"

    def test_strips_whitespace(self):
        """Surrounding whitespace is removed."""
        assert normalize_code("  ABC23456\n") == "ABC23456"

    def test_already_normal(self):
        """Normalized code is unchanged."""
        assert normalize_code("XYZ98765") == "XYZ98765"


class TestReferralLink:
    """Test referral link format."""

    def test_default_base(self):
        """Default base is the site root."""
        assert build_referral_link("ABC23456") == "/?ref=ABC23456"

    def test_custom_base(self):
        """Absolute base URL is kept as is."""
        link = build_referral_link("ABC23456", base="https://example.com/join")
        assert link == "https://example.com/join?ref=ABC23456"

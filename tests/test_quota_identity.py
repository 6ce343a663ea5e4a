import pytest

from app.schemas.quota import (
    QuotaClass,
    RateLimitResult,
    client_identity,
    installation_identity,
    sanitize_identity_part,
)


def test_installation_identity_strips_unsafe_characters() -> None:
    assert installation_identity("abc;DROP") == "install:abcDROP"
    assert installation_identity("a b*c?d[e]") == "install:abcde"


def test_identity_part_capped_at_64_chars() -> None:
    assert len(sanitize_identity_part("x" * 200)) == 64


def test_ipv4_and_ipv6_remain_distinct() -> None:
    assert client_identity("1.2.3.4") == "ip:1_2_3_4"
    assert client_identity("2001:db8::1") == "ip:2001_db8__1"
    assert client_identity("12.3.4.5") != client_identity("1.23.4.5")


def test_subscriber_identity_uses_token() -> None:
    assert client_identity("1.2.3.4", "tok-en:1") == "sub:token1"


def test_missing_address_falls_back() -> None:
    assert client_identity(None) == "ip:unknown"


@pytest.mark.parametrize(
    ("quota", "anonymous", "subscriber"),
    [
        (QuotaClass.GENERAL_TOOL, 10, 30),
        (QuotaClass.INSIGHT, 50, 50),
        (QuotaClass.COA, 5, 5),
    ],
)
def test_quota_limits(quota: QuotaClass, anonymous: int, subscriber: int) -> None:
    assert quota.limit_for(False) == anonymous
    assert quota.limit_for(True) == subscriber
    assert quota.window_seconds == 86400


def test_quota_prefixes_are_distinct() -> None:
    prefixes = {q.prefix for q in QuotaClass}
    assert len(prefixes) == len(QuotaClass)


def test_disabled_result_allows() -> None:
    result = RateLimitResult.disabled_result()
    assert result.allowed is True
    assert result.disabled is True

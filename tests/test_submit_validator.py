# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import pytest

from ksub_lib.core.config import CFG
from ksub_lib.core.error import KSubConfigurationError
from ksub_lib.submit.validator import (
    check_reserved_keys,
    check_unique_download_names,
    parse_key_value_pairs,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, {}),
        ("", {}),
        ("team=payments", {"team": "payments"}),
        (" team = payments , env=prod ", {"team ": " payments", "env": "prod"}),
        ("a=1,,b=2,", {"a": "1", "b": "2"}),
        ("url=http://host/?a=b", {"url": "http://host/?a=b"}),
        ("empty=", {"empty": ""}),
        ("a=1,a=2", {"a": "2"}),
    ],
)
def test_parse_key_value_pairs(raw, expected):
    assert parse_key_value_pairs(raw, "spark.some.key", "labels") == expected


@pytest.mark.parametrize("raw", ["team", "team=payments,env", "a=1, ,b"])
def test_parse_key_value_pairs_missing_separator(raw):
    with pytest.raises(KSubConfigurationError, match="spark.some.key"):
        parse_key_value_pairs(raw, "spark.some.key", "labels")


def test_check_reserved_keys_passes():
    check_reserved_keys({"team": "payments"}, CFG.labels.reserved, "labels")


@pytest.mark.parametrize("key", CFG.labels.reserved)
def test_check_reserved_keys_fails(key):
    with pytest.raises(KSubConfigurationError, match="reserved"):
        check_reserved_keys({"team": "payments", key: "x"}, CFG.labels.reserved, "labels")


@pytest.mark.parametrize(
    "locators",
    [
        [],
        ["/local/a.jar", "http://host/b.jar"],
        ["local:///opt/a.jar", "local:///usr/a.jar"],
        ["local:///opt/a.jar", "http://host/a.jar"],
    ],
)
def test_check_unique_download_names_passes(locators):
    check_unique_download_names(locators, "jars")


@pytest.mark.parametrize(
    "locators",
    [
        ["/local/a.jar", "http://host/a.jar"],
        ["file:///one/a.jar", "/two/a.jar"],
        ["hdfs://nn/lib/a.jar", "s3a://bucket/a.jar", "/local/b.jar"],
    ],
)
def test_check_unique_download_names_collision(locators):
    with pytest.raises(KSubConfigurationError, match="a.jar"):
        check_unique_download_names(locators, "jars")

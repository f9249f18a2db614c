# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import pytest

from ksub_lib.core.config import CFG
from ksub_lib.properties.conf import SubmissionConf
from ksub_lib.properties.dependencies import (
    PassthroughPath,
    StagedPath,
    StagingTicket,
    dependency_mode_from_conf,
)


def test_submission_conf_behaves_like_mapping():
    conf = SubmissionConf({"a": "1", "b": "2"})

    assert conf["a"] == "1"
    assert len(conf) == 2
    assert list(conf) == ["a", "b"]
    assert "b" in conf
    assert conf == {"a": "1", "b": "2"}


def test_submission_conf_is_immutable():
    conf = SubmissionConf({"a": "1"})

    with pytest.raises(TypeError):
        conf["a"] = "2"  # type: ignore[index]


def test_submission_conf_does_not_share_input():
    entries = {"a": "1"}
    conf = SubmissionConf(entries)
    entries["a"] = "changed"

    assert conf["a"] == "1"


def test_set_returns_new_conf():
    conf = SubmissionConf({"a": "1"})
    new = conf.set("b", "2").set("a", "3")

    assert conf == {"a": "1"}
    assert new == {"a": "3", "b": "2"}
    # overriding keeps the original position
    assert list(new) == ["a", "b"]


def test_set_all_and_remove():
    conf = SubmissionConf({"a": "1", "b": "2"})

    assert conf.setAll({"b": "3", "c": "4"}) == {"a": "1", "b": "3", "c": "4"}
    assert conf.remove("a") == {"b": "2"}
    assert conf.remove("missing") == conf


def test_get_option_treats_empty_as_missing():
    conf = SubmissionConf({"a": "1", "empty": ""})

    assert conf.getOption("a") == "1"
    assert conf.getOption("empty") is None
    assert conf.getOption("missing") is None


def test_redact_only_present_keys():
    conf = SubmissionConf({"token": "secret"})

    assert conf.redact("token", "<hidden>") == {"token": "<hidden>"}
    assert conf.redact("missing", "<hidden>") is conf


def test_equal_confs_have_equal_hashes():
    assert hash(SubmissionConf({"a": "1", "b": "2"})) == hash(
        SubmissionConf({"b": "2", "a": "1"})
    )


def test_dependency_mode_staged():
    conf = SubmissionConf({CFG.conf_keys.staging_server_uri: "http://staging:10000"})

    assert dependency_mode_from_conf(conf) == StagedPath("http://staging:10000")


@pytest.mark.parametrize("entries", [{}, {CFG.conf_keys.staging_server_uri: ""}])
def test_dependency_mode_passthrough(entries):
    assert dependency_mode_from_conf(SubmissionConf(entries)) == PassthroughPath()


def test_staging_ticket_repr_hides_secret():
    ticket = StagingTicket("resource-1", "top-secret")

    assert "resource-1" in repr(ticket)
    assert "top-secret" not in repr(ticket)

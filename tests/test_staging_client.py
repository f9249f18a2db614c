# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import io
import json
import tarfile
from unittest.mock import MagicMock, patch

import pytest
import requests

from ksub_lib.core.config import CFG
from ksub_lib.core.error import KSubConfigurationError, KSubTransientError
from ksub_lib.properties.dependencies import StagingTicket
from ksub_lib.staging.client import StagingClient, build_bundle


def _members(bundle: bytes) -> dict[str, bytes]:
    with tarfile.open(fileobj=io.BytesIO(bundle), mode="r:gz") as tar:
        return {m.name: tar.extractfile(m).read() for m in tar.getmembers()}


def test_build_bundle(tmp_path):
    (tmp_path / "a.jar").write_bytes(b"A")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "b.jar").write_bytes(b"B")

    bundle = build_bundle([str(tmp_path / "a.jar"), f"file://{tmp_path}/sub/b.jar"])

    assert _members(bundle) == {"a.jar": b"A", "b.jar": b"B"}


def test_build_bundle_empty():
    assert _members(build_bundle([])) == {}


def test_build_bundle_missing_file(tmp_path):
    with pytest.raises(KSubConfigurationError, match="missing.jar"):
        build_bundle([str(tmp_path / "missing.jar")])


def test_build_bundle_duplicate_names(tmp_path):
    (tmp_path / "x").mkdir()
    (tmp_path / "y").mkdir()
    (tmp_path / "x" / "a.jar").write_bytes(b"1")
    (tmp_path / "y" / "a.jar").write_bytes(b"2")

    with pytest.raises(KSubConfigurationError, match="unique"):
        build_bundle([str(tmp_path / "x" / "a.jar"), str(tmp_path / "y" / "a.jar")])


def test_upload_success(tmp_path):
    (tmp_path / "a.jar").write_bytes(b"A")
    response = MagicMock()
    response.json.return_value = {"resourceId": "id-1", "resourceSecret": "secret-1"}

    with patch(
        "ksub_lib.staging.client.requests.post", return_value=response
    ) as mock_post:
        ticket = StagingClient("http://staging:10000/").upload(
            [str(tmp_path / "a.jar")], {"spark-app-id": "pi-123"}, "default"
        )

    assert ticket == StagingTicket("id-1", "secret-1")
    response.raise_for_status.assert_called_once()

    args, kwargs = mock_post.call_args
    assert args[0] == f"http://staging:10000/{CFG.staging.upload_path}"
    assert kwargs["timeout"] == CFG.staging.timeout
    files = kwargs["files"]
    assert json.loads(files["podLabels"][1]) == {"spark-app-id": "pi-123"}
    assert files["podNamespace"][1] == "default"
    assert _members(files["resources"][1]) == {"a.jar": b"A"}


def test_upload_transport_failure():
    with (
        patch(
            "ksub_lib.staging.client.requests.post",
            side_effect=requests.ConnectionError("refused"),
        ),
        pytest.raises(KSubTransientError, match="refused"),
    ):
        StagingClient("http://staging:10000", timeout=5).upload([], {}, "default")


def test_upload_http_error():
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError("500 Server Error")

    with (
        patch("ksub_lib.staging.client.requests.post", return_value=response),
        pytest.raises(KSubTransientError, match="500"),
    ):
        StagingClient("http://staging:10000").upload([], {}, "default")


def test_upload_invalid_response():
    response = MagicMock()
    response.json.return_value = {"unexpected": "value"}

    with (
        patch("ksub_lib.staging.client.requests.post", return_value=response),
        pytest.raises(KSubTransientError, match="Invalid response"),
    ):
        StagingClient("http://staging:10000").upload([], {}, "default")

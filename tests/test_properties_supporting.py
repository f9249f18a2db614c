# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import base64
from unittest.mock import MagicMock

from ksub_lib.properties.supporting import (
    OwnerIdentity,
    SupportingResource,
    SupportingResourceKind,
)


def _identity():
    return OwnerIdentity(name="pi-123", api_version="v1", uid="uid-1", kind="Pod")


def test_secret_values_are_base64_encoded():
    secret = SupportingResource.secret("s", {"text": "value", "raw": b"\x00\x01"})

    assert secret.isSecret()
    assert secret.kind == SupportingResourceKind.SECRET
    assert base64.b64decode(secret.data["text"]) == b"value"
    assert base64.b64decode(secret.data["raw"]) == b"\x00\x01"


def test_config_map_values_are_kept():
    config_map = SupportingResource.configMap("c", {"key": "a=1\n"}, {"l": "v"})

    assert not config_map.isSecret()
    assert config_map.data == {"key": "a=1\n"}
    assert config_map.labels == {"l": "v"}


def test_with_owner_returns_new_resource():
    config_map = SupportingResource.configMap("c", {"key": "value"})
    owned = config_map.withOwner(_identity())

    assert config_map.owner is None
    assert owned.owner == _identity()
    assert owned.data == config_map.data


def test_owner_identity_from_kubernetes():
    created = MagicMock()
    created.metadata.name = "pi-123"
    created.metadata.uid = "uid-1"
    created.api_version = "v1"
    created.kind = "Pod"

    assert OwnerIdentity.fromKubernetes(created) == _identity()


def test_owner_reference_is_controller():
    reference = _identity().toKubernetes()

    assert reference.controller is True
    assert reference.name == "pi-123"
    assert reference.uid == "uid-1"
    assert reference.kind == "Pod"
    assert reference.api_version == "v1"


def test_secret_manifest():
    manifest = (
        SupportingResource.secret("s", {"key": "value"}).withOwner(_identity()).toManifest()
    )

    assert manifest.kind == "Secret"
    assert manifest.type == "Opaque"
    assert manifest.metadata.name == "s"
    assert manifest.metadata.owner_references[0].uid == "uid-1"
    assert manifest.data == {"key": base64.b64encode(b"value").decode()}


def test_config_map_manifest_without_owner():
    manifest = SupportingResource.configMap("c", {"key": "value"}).toManifest()

    assert manifest.kind == "ConfigMap"
    assert manifest.metadata.owner_references is None
    assert manifest.data == {"key": "value"}


def test_secret_repr_is_redacted():
    secret = SupportingResource.secret("s", {"token": "top-secret"})

    assert "top-secret" not in repr(secret)
    assert base64.b64encode(b"top-secret").decode() not in repr(secret)
    assert "s" in repr(secret)


def test_kind_string():
    assert str(SupportingResourceKind.SECRET) == "Secret"
    assert str(SupportingResourceKind.CONFIG_MAP) == "ConfigMap"

# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import base64

import pytest

from ksub_lib.core.config import CFG
from ksub_lib.core.error import KSubConfigurationError
from ksub_lib.credentials.mounter import CredentialsMounter, CredentialsMounterProvider
from ksub_lib.properties.conf import SubmissionConf
from ksub_lib.properties.workload import ContainerSpec, Volume, WorkloadSpec


@pytest.fixture
def spec():
    return WorkloadSpec(
        name="pi-123", containers=(ContainerSpec(name="driver", image="spark"),)
    )


@pytest.fixture
def credential_files(tmp_path):
    ca = tmp_path / "ca.crt"
    ca.write_bytes(b"CA")
    key = tmp_path / "client.key"
    key.write_bytes(b"KEY")
    cert = tmp_path / "client.crt"
    cert.write_bytes(b"CERT")
    return ca, key, cert


def test_no_credentials_produce_no_secret(spec):
    mounter = CredentialsMounter("pi-123", SubmissionConf())
    conf = SubmissionConf({"a": "1"})

    assert mounter.createCredentialsSecret() is None
    assert mounter.mountCredentials(spec, "driver", None) is spec
    assert mounter.recordCredentialLocations(conf) == conf


def test_full_credentials(spec, credential_files):
    ca, key, cert = credential_files
    conf = SubmissionConf(
        {
            CFG.conf_keys.driver_ca_cert_file: str(ca),
            CFG.conf_keys.driver_client_key_file: f"file://{key}",
            CFG.conf_keys.driver_client_cert_file: str(cert),
            CFG.conf_keys.driver_oauth_token: "token",
        }
    )
    mounter = CredentialsMounterProvider(conf).getCredentialsMounter("pi-123")

    secret = mounter.createCredentialsSecret()
    assert secret.isSecret()
    assert secret.name == "pi-123-kubernetes-credentials"
    assert {k: base64.b64decode(v) for k, v in secret.data.items()} == {
        "ca-cert": b"CA",
        "client-key": b"KEY",
        "client-cert": b"CERT",
        "oauth-token": b"token",
    }

    mounted = mounter.mountCredentials(spec, "driver", secret)
    assert (
        Volume.fromSecret(CFG.mounts.credentials_volume, secret.name) in mounted.volumes
    )
    (mount,) = mounted.getContainer("driver").volume_mounts
    assert mount.mount_path == CFG.mounts.credentials_dir

    recorded = mounter.recordCredentialLocations(conf)
    directory = CFG.mounts.credentials_dir
    assert recorded[CFG.conf_keys.driver_mounted_ca_cert_file] == f"{directory}/ca-cert"
    assert (
        recorded[CFG.conf_keys.driver_mounted_client_key_file]
        == f"{directory}/client-key"
    )
    assert (
        recorded[CFG.conf_keys.driver_mounted_client_cert_file]
        == f"{directory}/client-cert"
    )
    assert (
        recorded[CFG.conf_keys.driver_mounted_oauth_token_file]
        == f"{directory}/oauth-token"
    )
    assert recorded[CFG.conf_keys.driver_oauth_token] == CFG.defaults.redacted
    # original file locations are kept
    assert recorded[CFG.conf_keys.driver_ca_cert_file] == str(ca)
    # input is untouched
    assert conf[CFG.conf_keys.driver_oauth_token] == "token"


def test_token_only(spec):
    conf = SubmissionConf({CFG.conf_keys.driver_oauth_token: "token"})
    mounter = CredentialsMounter("pi-123", conf)

    secret = mounter.createCredentialsSecret()
    assert list(secret.data) == ["oauth-token"]

    recorded = mounter.recordCredentialLocations(conf)
    assert CFG.conf_keys.driver_mounted_ca_cert_file not in recorded
    assert CFG.conf_keys.driver_mounted_oauth_token_file in recorded


def test_unreadable_credential_file(tmp_path):
    conf = SubmissionConf(
        {CFG.conf_keys.driver_ca_cert_file: str(tmp_path / "missing.crt")}
    )

    with pytest.raises(KSubConfigurationError, match="missing.crt"):
        CredentialsMounter("pi-123", conf).createCredentialsSecret()

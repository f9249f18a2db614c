# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Configuration system for ksub.

This module defines dataclasses representing all tool-level settings of ksub,
including the names of the application configuration keys it reads and writes,
environment variables set on the driver container, reserved labels, mount paths,
init-container defaults, memory sizing, staging-server options and exit codes.

The `Config` class loads user configuration from a TOML file (if available)
and provides a globally accessible `CFG` instance.
"""

import os
import tomllib
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Self


@dataclass
class ConfKeys:
    """Names of the application configuration keys used by ksub."""

    # Name of the application.
    app_name: str = "spark.app.name"
    # Identifier of the application (set by ksub).
    app_id: str = "spark.app.id"
    # Address of the Kubernetes API server, prefixed with 'k8s://'.
    master: str = "spark.master"
    # Comma-separated list of jars.
    jars: str = "spark.jars"
    # Comma-separated list of files.
    files: str = "spark.files"
    # Namespace to submit the driver pod to.
    namespace: str = "spark.kubernetes.namespace"
    # Docker image of the driver container.
    driver_image: str = "spark.kubernetes.driver.docker.image"
    # URI of the resource staging server.
    staging_server_uri: str = "spark.kubernetes.resourceStagingServer.uri"
    # Memory of the driver process.
    driver_memory: str = "spark.driver.memory"
    # Memory overhead of the driver container in MiB.
    driver_memory_overhead: str = "spark.kubernetes.driver.memoryOverhead"
    # Custom labels of the driver pod.
    driver_labels: str = "spark.kubernetes.driver.labels"
    # Custom annotations of the driver pod.
    driver_annotations: str = "spark.kubernetes.driver.annotations"
    # Extra classpath of the driver process.
    driver_extra_classpath: str = "spark.driver.extraClassPath"
    # Extra JVM options of the driver process.
    driver_java_options: str = "spark.driver.extraJavaOptions"
    # Name of the driver pod (set by ksub).
    driver_pod_name: str = "spark.kubernetes.driver.pod.name"
    # Resolved local classpath for the executors (set by ksub).
    executor_resolved_classpath: str = (
        "spark.kubernetes.executor.resolvedMountedClasspath"
    )

    # Credentials used by ksub itself to talk to the API server.
    submission_ca_cert_file: str = "spark.kubernetes.authenticate.submission.caCertFile"
    submission_client_key_file: str = (
        "spark.kubernetes.authenticate.submission.clientKeyFile"
    )
    submission_client_cert_file: str = (
        "spark.kubernetes.authenticate.submission.clientCertFile"
    )
    submission_oauth_token: str = "spark.kubernetes.authenticate.submission.oauthToken"

    # Credentials mounted into the driver pod.
    driver_ca_cert_file: str = "spark.kubernetes.authenticate.driver.caCertFile"
    driver_client_key_file: str = "spark.kubernetes.authenticate.driver.clientKeyFile"
    driver_client_cert_file: str = "spark.kubernetes.authenticate.driver.clientCertFile"
    driver_oauth_token: str = "spark.kubernetes.authenticate.driver.oauthToken"

    # In-pod locations of the mounted driver credentials (set by ksub).
    driver_mounted_ca_cert_file: str = (
        "spark.kubernetes.authenticate.driver.mounted.caCertFile"
    )
    driver_mounted_client_key_file: str = (
        "spark.kubernetes.authenticate.driver.mounted.clientKeyFile"
    )
    driver_mounted_client_cert_file: str = (
        "spark.kubernetes.authenticate.driver.mounted.clientCertFile"
    )
    driver_mounted_oauth_token_file: str = (
        "spark.kubernetes.authenticate.driver.mounted.oauthTokenFile"
    )

    # Image of the init-containers fetching the dependencies.
    init_container_image: str = "spark.kubernetes.initcontainer.docker.image"
    # Directory the jars are downloaded to.
    jars_download_dir: str = "spark.kubernetes.mountdependencies.jarsDownloadDir"
    # Directory the files are downloaded to.
    files_download_dir: str = "spark.kubernetes.mountdependencies.filesDownloadDir"
    # Timeout for downloading the dependencies (in minutes).
    mount_timeout: str = "spark.kubernetes.mountdependencies.mountTimeout"

    # Keys read by the staged-dependency init-container.
    init_jars_resource_id: str = (
        "spark.kubernetes.initcontainer.downloadJarsResourceIdentifier"
    )
    init_jars_secret_location: str = (
        "spark.kubernetes.initcontainer.downloadJarsSecretLocation"
    )
    init_files_resource_id: str = (
        "spark.kubernetes.initcontainer.downloadFilesResourceIdentifier"
    )
    init_files_secret_location: str = (
        "spark.kubernetes.initcontainer.downloadFilesSecretLocation"
    )
    # Keys read by the remote-dependency init-container.
    init_remote_jars: str = "spark.kubernetes.initcontainer.remoteJars"
    init_remote_files: str = "spark.kubernetes.initcontainer.remoteFiles"

    # Keys telling the executors how to fetch the staged dependencies.
    executor_init_config_map: str = (
        "spark.kubernetes.initcontainer.executor.configmapname"
    )
    executor_init_config_map_key: str = (
        "spark.kubernetes.initcontainer.executor.configmapkey"
    )
    executor_init_secret: str = (
        "spark.kubernetes.initcontainer.executor.stagingServerSecret.name"
    )
    executor_init_secret_mount_dir: str = (
        "spark.kubernetes.initcontainer.executor.stagingServerSecret.mountDir"
    )
    # Keys telling the executors how to fetch the remote dependencies.
    executor_remote_config_map: str = (
        "spark.kubernetes.initcontainer.remoteFiles.configmapname"
    )
    executor_remote_config_map_key: str = (
        "spark.kubernetes.initcontainer.remoteFiles.configmapkey"
    )


@dataclass
class EnvironmentVariables:
    """Environment variable names used by ksub."""

    # Enables ksub debug mode.
    debug_mode: str = "KSUB_DEBUG"
    # Extra classpath of the driver.
    submit_extra_classpath: str = "SPARK_SUBMIT_EXTRA_CLASSPATH"
    # Memory of the driver container.
    driver_memory: str = "SPARK_DRIVER_MEMORY"
    # Main class of the application.
    driver_main_class: str = "SPARK_DRIVER_CLASS"
    # Arguments of the application.
    driver_args: str = "SPARK_DRIVER_ARGS"
    # Resolved local classpath of the driver.
    mounted_classpath: str = "SPARK_MOUNTED_CLASSPATH"
    # JVM options of the driver.
    driver_java_opts: str = "SPARK_DRIVER_JAVA_OPTS"


@dataclass
class LabelSettings:
    """Labels reserved by ksub for bookkeeping."""

    # Label holding the application identifier.
    app_id: str = "spark-app-id"
    # Label holding the application name.
    app_name: str = "spark-app-name"

    @property
    def reserved(self) -> list[str]:
        """List of all reserved label keys."""
        return [self.app_id, self.app_name]


@dataclass
class MountSettings:
    """Volumes and paths used inside the driver pod."""

    # Name of the driver container.
    driver_container: str = "spark-kubernetes-driver"
    # Directory the driver credentials are mounted to.
    credentials_dir: str = "/mnt/secrets/spark-kubernetes-credentials"
    # Name of the volume holding the driver credentials.
    credentials_volume: str = "kubernetes-credentials"
    # Directory the staging-server secret is mounted to.
    init_secret_dir: str = "/mnt/secrets/spark-init"
    # Directory the init-container properties are mounted to.
    init_properties_dir: str = "/etc/spark-init"
    # Shared volume for the downloaded jars.
    jars_volume: str = "download-jars-volume"
    # Shared volume for the downloaded files.
    files_volume: str = "download-files-volume"
    # Default directory the jars are downloaded to.
    jars_download_dir: str = "/var/spark-data/spark-jars"
    # Default directory the files are downloaded to.
    files_download_dir: str = "/var/spark-data/spark-files"


@dataclass
class InitContainerSettings:
    """Settings of the dependency-fetching init-containers."""

    # Default image of the init-containers.
    image: str = "spark-init:latest"
    # Default timeout (in minutes) for fetching the dependencies.
    mount_timeout_minutes: int = 5
    # Name of the staged-dependency init-container.
    staged_name: str = "spark-init"
    # Name of the remote-dependency init-container.
    remote_name: str = "spark-remote-init"
    # Key of the properties entry read by the staged-dependency init-container.
    staged_config_key: str = "download-submitted-files"
    # Key of the properties entry read by the remote-dependency init-container.
    remote_config_key: str = "download-remote-dependencies"
    # Secret key holding the jars resource secret.
    jars_secret_key: str = "downloadSubmittedJarsSecret"
    # Secret key holding the files resource secret.
    files_secret_key: str = "downloadSubmittedFilesSecret"


@dataclass
class MemorySettings:
    """Sizing of the driver container."""

    # Fraction of the driver memory added as overhead.
    overhead_factor: float = 0.10
    # Minimal overhead in MiB.
    overhead_min_mb: int = 384
    # Default driver memory.
    default_driver_memory: str = "1g"


@dataclass
class StagingSettings:
    """Settings for the resource staging server."""

    # Path of the upload endpoint.
    upload_path: str = "api/v0/resources/"
    # Timeout for the upload request in seconds.
    timeout: int = 300


@dataclass
class DefaultSettings:
    """Defaults for application configuration values."""

    # Default application name.
    app_name: str = "spark"
    # Default namespace.
    namespace: str = "default"
    # Default driver image.
    driver_image: str = "spark-driver:latest"
    # Placeholder for the primary resource meaning 'no resource'.
    no_resource: str = "spark-internal"
    # Value used in place of redacted secrets.
    redacted: str = "<present_but_redacted>"


@dataclass
class DateFormats:
    """Date and time format strings."""

    # Standard date format used by ksub.
    standard: str = "%Y-%m-%d %H:%M:%S"


@dataclass
class ExitCodes:
    """Exit codes used for various errors."""

    # Default error code for failures of ksub commands.
    default: int = 91
    # Returned when a submission precondition is not met.
    precondition: int = 92
    # Returned when the staging server or the cluster could not be reached.
    transient: int = 93
    # Returned when ksub detects an internal inconsistency.
    invariant_violation: int = 98
    # Returned on an unexpected or unhandled error.
    unexpected_error: int = 99


@dataclass
class Config:
    """Main configuration for ksub."""

    conf_keys: ConfKeys = field(default_factory=ConfKeys)
    env_vars: EnvironmentVariables = field(default_factory=EnvironmentVariables)
    labels: LabelSettings = field(default_factory=LabelSettings)
    mounts: MountSettings = field(default_factory=MountSettings)
    init_container: InitContainerSettings = field(
        default_factory=InitContainerSettings
    )
    memory: MemorySettings = field(default_factory=MemorySettings)
    staging: StagingSettings = field(default_factory=StagingSettings)
    defaults: DefaultSettings = field(default_factory=DefaultSettings)
    date_formats: DateFormats = field(default_factory=DateFormats)
    exit_codes: ExitCodes = field(default_factory=ExitCodes)

    # Name of the ksub binary.
    binary_name: str = "ksub"

    @classmethod
    def load(cls, config_path: Path | None = None) -> Self:
        """
        Load configuration from TOML file or use defaults.

        Args:
            config_path: Explicit path to config file. If None, searches standard locations.

        Returns:
            Config instance with loaded or default values.
        """
        if config_path is None:
            config_path = Config._get_config_path()

        try:
            if config_path and config_path.exists():
                with config_path.open("rb") as f:
                    config_data = tomllib.load(f)
                return _dict_to_dataclass(cls, config_data)
        except Exception as e:
            raise ValueError(f"Could not read ksub config '{config_path}': {e}.")

        # no config found - use defaults
        return cls()

    @staticmethod
    def _get_config_path() -> Path | None:
        """
        Search for config file in standard locations (XDG compliant).
        Returns the first existing config file, or None.
        """
        config_locations: list[Path | None] = [
            # 1. Explicit environment variable (highest priority)
            Path(env_path) if (env_path := os.getenv("KSUB_CONFIG")) else None,
            # 2. Current working directory (for development/override)
            Path.cwd() / "ksub_config.toml",
            # 3. XDG config home (standard user config location)
            Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config"))
            / "ksub"
            / "config.toml",
        ]

        for path in config_locations:
            if path and path.is_file():
                return path

        return None


def _dict_to_dataclass(cls, data: dict[str, Any]):
    """
    Recursively convert a dictionary to a dataclass instance.
    Handles nested dataclasses properly.
    """
    if not is_dataclass(cls):
        return data

    field_values = {}
    for field_info in fields(cls):
        field_name = field_info.name
        field_type = field_info.type

        if field_name in data:
            value = data[field_name]
            if is_dataclass(field_type) and isinstance(value, dict):
                field_values[field_name] = _dict_to_dataclass(field_type, value)
            else:
                field_values[field_name] = value

    return cls(**field_values)


# Global configuration for ksub.
CFG = Config.load()

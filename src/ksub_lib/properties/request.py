# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from dataclasses import dataclass
from typing import Self

from ksub_lib.core.common import split_csv
from ksub_lib.core.config import CFG

from .conf import SubmissionConf


@dataclass(frozen=True)
class SubmissionRequest:
    """
    Everything the user asked to submit.

    Attributes:
        main_class (str): Entry class of the application.
        app_args (tuple[str, ...]): Arguments passed to the application.
        main_app_resource (str): Locator of the primary application artifact.
        conf (SubmissionConf): Application configuration.
        jars (tuple[str, ...]): Locators of all jar dependencies (including the primary artifact).
        files (tuple[str, ...]): Locators of all file dependencies.
    """

    main_class: str
    app_args: tuple[str, ...]
    main_app_resource: str
    conf: SubmissionConf
    jars: tuple[str, ...]
    files: tuple[str, ...]

    @classmethod
    def fromArgs(
        cls,
        main_app_resource: str,
        main_class: str,
        app_args: list[str] | tuple[str, ...],
        conf: SubmissionConf,
    ) -> Self:
        """
        Build a request from the positional command-line arguments and the configuration.

        The jars are read from the jars configuration entry and the primary artifact is
        appended unless it is the 'no resource' placeholder. The files are read from
        the files configuration entry.

        Args:
            main_app_resource (str): Locator of the primary application artifact.
            main_class (str): Entry class of the application.
            app_args (list[str] | tuple[str, ...]): Arguments passed to the application.
            conf (SubmissionConf): Application configuration.

        Returns:
            SubmissionRequest: The constructed request.
        """
        jars = split_csv(conf.get(CFG.conf_keys.jars))
        if main_app_resource and main_app_resource != CFG.defaults.no_resource:
            jars.append(main_app_resource)

        return cls(
            main_class=main_class,
            app_args=tuple(app_args),
            main_app_resource=main_app_resource,
            conf=conf,
            jars=tuple(jars),
            files=tuple(split_csv(conf.get(CFG.conf_keys.files))),
        )

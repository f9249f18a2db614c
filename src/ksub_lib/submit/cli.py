# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import sys
from typing import NoReturn

import click
from click_help_colors import HelpColorsCommand
from click_option_group import optgroup

from ksub_lib.core.config import CFG
from ksub_lib.core.error import KSubError, KSubInvariantViolation
from ksub_lib.core.logger import get_logger
from ksub_lib.submit.factory import SubmitterFactory

logger = get_logger(__name__)


@click.command(
    short_help="Submit an application to a Kubernetes cluster.",
    help=f"""
Submit a Spark application to a Kubernetes cluster.

{click.style("APP_RESOURCE", fg="green")}   Locator of the primary application artifact (use '{CFG.defaults.no_resource}' for none).

{click.style("MAIN_CLASS", fg="green")}     Entry class of the application.

{click.style("ARGS", fg="green")}           Arguments passed to the application.

Dependencies on the local disk are uploaded to the resource staging server
and downloaded into the driver pod by an init-container. Without a staging
server, all dependencies must be remote or present in the container image.
""",
    cls=HelpColorsCommand,
    help_options_color="bright_blue",
    context_settings={
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    },
)
@click.argument(
    "app_resource", type=str, metavar=click.style("APP_RESOURCE", fg="green")
)
@click.argument("main_class", type=str, metavar=click.style("MAIN_CLASS", fg="green"))
@click.argument(
    "args", nargs=-1, type=click.UNPROCESSED, metavar=click.style("ARGS", fg="green")
)
@optgroup.group(f"{click.style('Application', fg='yellow')}")
@optgroup.option(
    "--name",
    type=str,
    default=None,
    help=f"Name of the application. Defaults to '{CFG.defaults.app_name}'.",
)
@optgroup.option(
    "--namespace",
    type=str,
    default=None,
    help=f"Namespace to submit the driver pod to. Defaults to '{CFG.defaults.namespace}'.",
)
@optgroup.option(
    "--image",
    type=str,
    default=None,
    help=f"Image of the driver container. Defaults to '{CFG.defaults.driver_image}'.",
)
@optgroup.group(f"{click.style('Dependencies', fg='yellow')}")
@optgroup.option(
    "--jars",
    type=str,
    default=None,
    help="Comma-separated list of jars to add to the classpath of the driver and the executors.",
)
@optgroup.option(
    "--files",
    type=str,
    default=None,
    help="Comma-separated list of files to place in the working directory of the driver and the executors.",
)
@optgroup.option(
    "--staging-server",
    type=str,
    default=None,
    help="URI of the resource staging server. Required when submitting dependencies from the local disk.",
)
@optgroup.group(f"{click.style('Configuration', fg='yellow')}")
@optgroup.option(
    "--conf",
    "-c",
    type=str,
    multiple=True,
    help="Configuration entry in the format `<key>=<value>`. Can be specified multiple times.",
)
@optgroup.option(
    "--properties-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML file with configuration entries. Entries specified on the command line take precedence.",
)
def submit(app_resource: str, main_class: str, args: tuple[str, ...], **kwargs) -> NoReturn:
    """
    Submit a Spark application to a Kubernetes cluster.
    """
    try:
        factory = SubmitterFactory(app_resource, main_class, args, **kwargs)
        submitter = factory.makeSubmitter()
        pod_name = submitter.submit()

        logger.info(f"Application '{submitter.getAppId()}' submitted successfully.")
        print(pod_name)
        sys.exit(0)
    except KSubError as e:
        logger.error(e)
        sys.exit(e.exit_code)
    except KSubInvariantViolation as e:
        logger.critical(e, exc_info=True)
        sys.exit(e.exit_code)
    except Exception as e:
        logger.critical(e, exc_info=True, stack_info=True)
        sys.exit(CFG.exit_codes.unexpected_error)

"""Command line entry point for azdsc.

Publishes a DSC configuration to an Azure Automation account and compiles
it for a fleet of sequentially named VMs.

Exit codes:
    0  every compilation job completed
    2  any fatal error (authentication, missing account, import, job
       failure, unrecognized status, invalid input)

This is the single top-level error handler: lower layers raise
DscProvisionError subclasses and never exit on their own.
"""

import logging
import sys

import click
from azure.core.exceptions import AzureError
from rich.console import Console
from rich.table import Table

from azdsc import __version__
from azdsc.auth_models import ServicePrincipalConfig
from azdsc.config_manager import ConfigManager
from azdsc.exceptions import ConfigError, DscProvisionError
from azdsc.job_poller import DEFAULT_POLL_INTERVAL, JobPoller
from azdsc.log_sanitizer import LogSanitizer
from azdsc.provisioner import ProvisioningReport, ProvisioningRequest, Provisioner

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 2

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

QUIET_LOGGERS = ("azure", "azure.identity", "azure.core.pipeline.policies.http_logging_policy", "msal")


def setup_logging(verbose: bool = False) -> None:
    """Send timestamped log lines to stdout."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _pick(option_value, config_value, name: str, required: bool = True):
    """Option/env var wins over the config file."""
    value = option_value if option_value is not None else config_value
    if required and value in (None, ""):
        raise ConfigError(
            f"Missing required value '{name}'. Pass --{name.replace('_', '-')}, "
            "set its environment variable or add it to the config file."
        )
    return value


def _prompt_secret() -> str:
    """Ask for the service principal secret without echoing it."""
    try:
        secret = click.prompt("Service principal secret", hide_input=True, default="", show_default=False)
    except click.Abort:
        secret = ""
    if not secret:
        raise ConfigError(
            "Missing required value 'client_secret'. Pass --client-secret, "
            "set AZURE_CLIENT_SECRET or enter it at the prompt."
        )
    return secret


def print_summary(report: ProvisioningReport, console: Console | None = None) -> None:
    """Render compiled nodes as a table."""
    console = console or Console()
    table = Table(title=f"DSC configuration {report.configuration_name} on {report.account.name}")
    table.add_column("Node", style="cyan")
    table.add_column("Compilation job")
    table.add_column("Status", style="green")
    table.add_column("Polls", justify="right")

    for result in report.compilations:
        table.add_row(result.vm_name, result.job_id, result.status, str(result.polls))

    console.print(table)


@click.command(name="azdsc")
@click.option("--tenant-id", envvar="AZURE_TENANT_ID", help="Azure tenant ID")
@click.option("--subscription-id", envvar="AZURE_SUBSCRIPTION_ID", help="Azure subscription ID")
@click.option("--resource-group", "--rg", envvar="AZDSC_RESOURCE_GROUP", help="Resource group of the automation account")
@click.option("--account-name", envvar="AZDSC_AUTOMATION_ACCOUNT", help="Automation account name")
@click.option("--vm-base-name", envvar="AZDSC_VM_BASE_NAME", help="VM name prefix (suffixed 001, 002, ...)")
@click.option("--vm-count", envvar="AZDSC_VM_COUNT", type=click.IntRange(min=1), help="Number of VMs to compile for")
@click.option("--client-id", envvar="AZURE_CLIENT_ID", help="Service principal application ID")
@click.option(
    "--client-secret",
    envvar="AZURE_CLIENT_SECRET",
    show_envvar=True,
    help="Service principal secret (prompted for when unset)",
)
@click.option(
    "--configuration-path",
    envvar="AZDSC_CONFIGURATION_PATH",
    type=click.Path(dir_okay=False),
    help="Path to the DSC configuration script (.ps1)",
)
@click.option("--configuration-name", help="Configuration name (default: script file name)")
@click.option("--module-name", help="Automation module to import before publishing")
@click.option("--module-uri", help="Content link of the module package")
@click.option(
    "--poll-interval",
    envvar="AZDSC_POLL_INTERVAL",
    type=click.FloatRange(min=0),
    help=f"Seconds between status polls (default: {DEFAULT_POLL_INTERVAL:g})",
)
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.version_option(__version__, prog_name="azdsc")
def main(
    tenant_id: str | None,
    subscription_id: str | None,
    resource_group: str | None,
    account_name: str | None,
    vm_base_name: str | None,
    vm_count: int | None,
    client_id: str | None,
    client_secret: str | None,
    configuration_path: str | None,
    configuration_name: str | None,
    module_name: str | None,
    module_uri: str | None,
    poll_interval: float | None,
    config_path: str | None,
    verbose: bool,
):
    """Publish a DSC configuration and compile it for a fleet of VMs.

    \b
    EXAMPLES:
        # Compile ServerConfig.ps1 for web001..web003
        $ export AZURE_CLIENT_SECRET="..."
        $ azdsc --tenant-id TENANT --subscription-id SUB \\
            --client-id APP --resource-group rg-automation \\
            --account-name aa-prod --vm-base-name web --vm-count 3 \\
            --configuration-path dsc/ServerConfig.ps1
    """
    setup_logging(verbose)

    try:
        config = ConfigManager.load_config(config_path)
        if not client_secret:
            client_secret = _prompt_secret()
        LogSanitizer.register_secret(client_secret)

        credentials = ServicePrincipalConfig(
            tenant_id=_pick(tenant_id, config.tenant_id, "tenant_id"),
            client_id=_pick(client_id, config.client_id, "client_id"),
            subscription_id=_pick(subscription_id, config.subscription_id, "subscription_id"),
            client_secret=client_secret,
        )
        request = ProvisioningRequest(
            credentials=credentials,
            resource_group=_pick(resource_group, config.resource_group, "resource_group"),
            account_name=_pick(account_name, config.account_name, "account_name"),
            vm_base_name=_pick(vm_base_name, config.vm_base_name, "vm_base_name"),
            vm_count=_pick(vm_count, config.vm_count, "vm_count"),
            configuration_path=_pick(configuration_path, config.configuration_path, "configuration_path"),
            configuration_name=_pick(configuration_name, config.configuration_name, "configuration_name", required=False),
            module_name=_pick(module_name, config.module_name, "module_name", required=False),
            module_uri=_pick(module_uri, config.module_uri, "module_uri", required=False),
        )

        interval = _pick(poll_interval, config.poll_interval, "poll_interval", required=False)
        poller = JobPoller(interval=DEFAULT_POLL_INTERVAL if interval is None else interval)

        logger.info(
            f"Provisioning {request.vm_count} node configuration(s) in "
            f"{request.resource_group}/{request.account_name}"
        )
        report = Provisioner(poller).run(request)

    except (DscProvisionError, AzureError, ValueError) as e:
        logger.error(LogSanitizer.describe(e))
        sys.exit(EXIT_FAILURE)
    except Exception as e:
        logger.error(LogSanitizer.describe(e, f"Unexpected {type(e).__name__}"))
        sys.exit(EXIT_FAILURE)

    print_summary(report)
    logger.info("Provisioning completed successfully")
    sys.exit(EXIT_SUCCESS)


if __name__ == "__main__":
    main()

"""Automation module import.

Creates or updates an automation module from a content link (typically a
PowerShell Gallery package URI) and waits for its provisioning state to
reach a terminal value.
"""

import logging

from azure.core.exceptions import AzureError
from azure.mgmt.automation.models import ContentLink, ModuleCreateOrUpdateParameters

from azdsc.account_locator import AutomationAccountRef
from azdsc.exceptions import ApiCallError, OperationFailedError
from azdsc.job_poller import MODULE_PROVISIONING, JobPoller, PollResult
from azdsc.log_sanitizer import LogSanitizer
from azdsc.session import AutomationSession

logger = logging.getLogger(__name__)


def import_module(
    session: AutomationSession,
    account: AutomationAccountRef,
    module_name: str,
    content_uri: str,
    poller: JobPoller,
    content_version: str | None = None,
) -> PollResult:
    """Import a module into the automation account and wait for it.

    Args:
        session: Authenticated automation session
        account: Target automation account
        module_name: Module name as it will appear in the account
        content_uri: URI of the module package
        poller: Poll driver
        content_version: Optional module version

    Returns:
        PollResult of the provisioning wait

    Raises:
        ApiCallError: If the create or status call fails
        OperationFailedError: If provisioning ends Failed or Cancelled
        UnrecognizedStatusError: If provisioning reports an unknown state
    """
    modules = session.client.module
    parameters = ModuleCreateOrUpdateParameters(
        content_link=ContentLink(uri=content_uri, version=content_version),
        location=account.location,
    )

    logger.info(f"Importing module {module_name} from {content_uri}")
    try:
        modules.create_or_update(account.resource_group, account.name, module_name, parameters)
    except AzureError as e:
        raise ApiCallError(
            LogSanitizer.describe(e, f"Module import of {module_name} failed")
        ) from e

    last_error: list[str | None] = [None]

    def fetch_status():
        try:
            module = modules.get(account.resource_group, account.name, module_name)
        except AzureError as e:
            raise ApiCallError(
                LogSanitizer.describe(e, f"Module status query for {module_name} failed")
            ) from e
        error = getattr(module, "error", None)
        last_error[0] = getattr(error, "message", None) if error else None
        return module.provisioning_state

    try:
        result = poller.wait(module_name, fetch_status, MODULE_PROVISIONING)
    except OperationFailedError as e:
        raise OperationFailedError(e.operation_id, e.status, last_error[0]) from e

    logger.info(f"Module {module_name} provisioned ({result.status})")
    return result

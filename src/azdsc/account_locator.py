"""Automation account lookup."""

import logging
from dataclasses import dataclass

from azure.core.exceptions import AzureError, ResourceNotFoundError

from azdsc.exceptions import AccountNotFoundError, ApiCallError
from azdsc.log_sanitizer import LogSanitizer
from azdsc.session import AutomationSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AutomationAccountRef:
    """Resolved automation account. Read-only after lookup."""

    resource_group: str
    name: str
    location: str | None = None
    id: str | None = None


def locate_account(
    session: AutomationSession, resource_group: str, account_name: str
) -> AutomationAccountRef:
    """Resolve an automation account by resource group and name.

    Args:
        session: Authenticated automation session
        resource_group: Resource group holding the account
        account_name: Automation account name

    Returns:
        AutomationAccountRef used by all subsequent calls

    Raises:
        AccountNotFoundError: If the account does not exist (not retried)
        ApiCallError: If the lookup itself fails
    """
    logger.info(f"Looking up automation account {account_name} in {resource_group}")

    try:
        account = session.client.automation_account.get(resource_group, account_name)
    except ResourceNotFoundError as e:
        raise AccountNotFoundError(resource_group, account_name) from e
    except AzureError as e:
        raise ApiCallError(
            LogSanitizer.describe(e, "Automation account lookup failed")
        ) from e

    if account is None:
        raise AccountNotFoundError(resource_group, account_name)

    ref = AutomationAccountRef(
        resource_group=resource_group,
        name=account_name,
        location=getattr(account, "location", None),
        id=getattr(account, "id", None),
    )
    logger.info(f"Found automation account {ref.name} ({ref.location})")
    return ref

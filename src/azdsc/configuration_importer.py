"""DSC configuration publishing.

Uploads a DSC configuration script as embedded content. The service
treats the call as a PUT: publishing the same name again replaces the
previous content, so repeated runs converge on the same configuration.
"""

import hashlib
import logging
from pathlib import Path

from azure.core.exceptions import AzureError
from azure.mgmt.automation.models import (
    ContentHash,
    ContentSource,
    DscConfigurationCreateOrUpdateParameters,
)

from azdsc.account_locator import AutomationAccountRef
from azdsc.exceptions import ApiCallError, ConfigurationSourceError
from azdsc.log_sanitizer import LogSanitizer
from azdsc.session import AutomationSession

logger = logging.getLogger(__name__)


def read_configuration_source(source_path: str | Path) -> str:
    """Read a DSC configuration script.

    Raises:
        ConfigurationSourceError: If the file is missing, unreadable or empty
    """
    path = Path(source_path).expanduser()
    if not path.is_file():
        raise ConfigurationSourceError(f"DSC configuration source not found: {path}")

    try:
        content = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationSourceError(f"Cannot read DSC configuration source {path}: {e}") from e

    if not content.strip():
        raise ConfigurationSourceError(f"DSC configuration source is empty: {path}")
    return content


def content_hash(content: str) -> ContentHash:
    """SHA-256 hash of the script in the form the service expects."""
    digest = hashlib.sha256(content.encode("utf-8")).hexdigest().upper()
    return ContentHash(algorithm="sha256", value=digest)


def publish_configuration(
    session: AutomationSession,
    account: AutomationAccountRef,
    source_path: str | Path,
    configuration_name: str | None = None,
    description: str | None = None,
) -> str:
    """Publish a DSC configuration, overwriting any existing one of the same name.

    Args:
        session: Authenticated automation session
        account: Target automation account
        source_path: Path to the .ps1 configuration script
        configuration_name: Configuration name (defaults to the file stem,
            which must match the Configuration block name in the script)
        description: Optional description

    Returns:
        The published configuration name

    Raises:
        ConfigurationSourceError: If the script cannot be read
        ApiCallError: If the publish call fails (not retried)
    """
    content = read_configuration_source(source_path)
    name = configuration_name or Path(source_path).stem

    parameters = DscConfigurationCreateOrUpdateParameters(
        name=name,
        location=account.location,
        source=ContentSource(
            hash=content_hash(content),
            type="embeddedContent",
            value=content,
        ),
        log_verbose=False,
        log_progress=False,
        description=description,
    )

    logger.info(f"Publishing DSC configuration {name} to {account.name}")
    try:
        session.client.dsc_configuration.create_or_update(
            account.resource_group, account.name, name, parameters
        )
    except AzureError as e:
        raise ApiCallError(
            LogSanitizer.describe(e, f"Publishing configuration {name} failed")
        ) from e

    logger.info(f"DSC configuration {name} published")
    return name

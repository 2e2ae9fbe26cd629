"""Service principal authentication and the automation session.

This module exchanges a service principal credential for an
AutomationSession: an explicit client object bound to one tenant and one
subscription that every later component receives by reference.

Design:
- Delegate token handling to azure-identity, no token storage
- Smoke-test the credential by requesting an ARM token before use
- Fail-fast: any failure is an AuthenticationError, never retried
"""

import logging
from dataclasses import dataclass
from typing import Any

from azure.core.exceptions import AzureError, ClientAuthenticationError
from azure.identity import ClientSecretCredential
from azure.mgmt.automation import AutomationClient

from azdsc.auth_models import ServicePrincipalConfig
from azdsc.exceptions import AuthenticationError
from azdsc.log_sanitizer import LogSanitizer

logger = logging.getLogger(__name__)

ARM_SCOPE = "https://management.azure.com/.default"


@dataclass
class AutomationSession:
    """Authenticated session scoped to a tenant and subscription."""

    tenant_id: str
    subscription_id: str
    credential: Any
    client: Any


def authenticate(config: ServicePrincipalConfig) -> AutomationSession:
    """Establish an automation session for a service principal.

    Args:
        config: Service principal configuration (secret held in memory)

    Returns:
        AutomationSession bound to config.subscription_id

    Raises:
        AuthenticationError: If the credential is rejected or the identity
            endpoint is unreachable
    """
    LogSanitizer.register_secret(config.client_secret)
    logger.info(
        f"Authenticating service principal {config.client_id} in tenant {config.tenant_id}"
    )

    try:
        credential = ClientSecretCredential(
            tenant_id=config.tenant_id,
            client_id=config.client_id,
            client_secret=config.client_secret,
        )
        token = credential.get_token(ARM_SCOPE)
    except ClientAuthenticationError as e:
        raise AuthenticationError(
            LogSanitizer.describe(e, "Service principal authentication failed")
        ) from e
    except (AzureError, ValueError) as e:
        raise AuthenticationError(
            LogSanitizer.describe(e, "Identity endpoint request failed")
        ) from e

    if not token or not token.token:
        raise AuthenticationError("Identity endpoint returned an empty access token")

    client = AutomationClient(credential, config.subscription_id)
    logger.info(f"Session scoped to subscription {config.subscription_id}")

    return AutomationSession(
        tenant_id=config.tenant_id,
        subscription_id=config.subscription_id,
        credential=credential,
        client=client,
    )

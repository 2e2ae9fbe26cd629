"""Error taxonomy for azdsc.

Every failure raised by the provisioning pipeline derives from
DscProvisionError so the CLI can act as the single top-level handler:
log the (sanitized) message and exit with code 2.

Taxonomy:
- AuthenticationError: invalid credential or unreachable identity endpoint
- AccountNotFoundError: target automation account does not exist
- ApiCallError: an Azure management call raised
- ConfigurationSourceError: local DSC source file missing or unreadable
- OperationFailedError: async operation reached a failure terminal state
- UnrecognizedStatusError: async operation reported an unknown status
- PollTimeoutError: optional polling deadline exceeded
- ConfigError: invalid configuration file or option values
"""


class DscProvisionError(Exception):
    """Base class for all azdsc failures."""

    pass


class AuthenticationError(DscProvisionError):
    """Raised when the service principal cannot obtain a session."""

    pass


class AccountNotFoundError(DscProvisionError):
    """Raised when the automation account cannot be found."""

    def __init__(self, resource_group: str, account_name: str):
        self.resource_group = resource_group
        self.account_name = account_name
        super().__init__(
            f"Automation account '{account_name}' not found in resource group '{resource_group}'"
        )


class ApiCallError(DscProvisionError):
    """Raised when an Azure management API call fails."""

    pass


class ConfigurationSourceError(DscProvisionError):
    """Raised when the DSC configuration source cannot be read."""

    pass


class OperationFailedError(DscProvisionError):
    """Raised when an asynchronous operation ends in a failure state.

    Carries the operation identifier and last-known status so the
    diagnostic identifies exactly which job failed.
    """

    def __init__(self, operation_id: str, status: str | None, detail: str | None = None):
        self.operation_id = operation_id
        self.status = status
        self.detail = detail
        message = f"Operation {operation_id} ended with status '{status}'"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class UnrecognizedStatusError(DscProvisionError):
    """Raised when an asynchronous operation reports a status outside its vocabulary.

    Deliberately not a subclass of OperationFailedError: an unknown status
    is a protocol violation, not a reported failure.
    """

    def __init__(self, operation_id: str, status: str | None):
        self.operation_id = operation_id
        self.status = status
        super().__init__(f"Operation {operation_id} reported unrecognized status '{status}'")


class PollTimeoutError(DscProvisionError):
    """Raised when polling exceeds the configured deadline."""

    def __init__(self, operation_id: str, status: str | None, elapsed: float):
        self.operation_id = operation_id
        self.status = status
        self.elapsed = elapsed
        super().__init__(
            f"Operation {operation_id} still '{status}' after {elapsed:.0f} seconds"
        )


class ConfigError(DscProvisionError):
    """Raised when configuration loading or validation fails."""

    pass

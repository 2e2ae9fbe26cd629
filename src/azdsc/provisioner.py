"""End-to-end provisioning pipeline.

Authenticate -> locate account -> (import module) -> publish configuration
-> compile for every VM. Strictly sequential; the first error propagates
to the caller untouched.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from azdsc.account_locator import AutomationAccountRef, locate_account
from azdsc.auth_models import ServicePrincipalConfig
from azdsc.compilation_dispatcher import CompilationDispatcher, CompilationResult
from azdsc.configuration_importer import publish_configuration
from azdsc.job_poller import JobPoller, PollResult
from azdsc.module_importer import import_module
from azdsc.session import AutomationSession, authenticate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisioningRequest:
    """Everything a provisioning run needs."""

    credentials: ServicePrincipalConfig
    resource_group: str
    account_name: str
    vm_base_name: str
    vm_count: int
    configuration_path: str
    configuration_name: str | None = None
    module_name: str | None = None
    module_uri: str | None = None

    def __post_init__(self):
        if self.vm_count < 1:
            raise ValueError(f"vm_count must be a positive integer, got {self.vm_count}")
        if bool(self.module_name) != bool(self.module_uri):
            raise ValueError("module_name and module_uri must be given together")


@dataclass
class ProvisioningReport:
    """Outcome of a successful run."""

    account: AutomationAccountRef
    configuration_name: str
    module: PollResult | None = None
    compilations: list[CompilationResult] = field(default_factory=list)


class Provisioner:
    """Run the provisioning pipeline."""

    def __init__(
        self,
        poller: JobPoller,
        authenticator: Callable[[ServicePrincipalConfig], AutomationSession] = authenticate,
    ):
        self.poller = poller
        self.authenticator = authenticator

    def run(
        self,
        request: ProvisioningRequest,
        on_result: Callable[[CompilationResult], None] | None = None,
    ) -> ProvisioningReport:
        """Execute every phase in order.

        Raises:
            DscProvisionError: Any failure, from whichever phase raised it
        """
        session = self.authenticator(request.credentials)
        account = locate_account(session, request.resource_group, request.account_name)

        module_result = None
        if request.module_name and request.module_uri:
            module_result = import_module(
                session, account, request.module_name, request.module_uri, self.poller
            )

        configuration_name = publish_configuration(
            session, account, request.configuration_path, request.configuration_name
        )

        dispatcher = CompilationDispatcher(session, account, self.poller)
        compilations = dispatcher.dispatch(
            configuration_name, request.vm_base_name, request.vm_count, on_result=on_result
        )

        logger.info(f"All {len(compilations)} compilation jobs completed")
        return ProvisioningReport(
            account=account,
            configuration_name=configuration_name,
            module=module_result,
            compilations=compilations,
        )

"""DSC compilation job dispatch.

Launches one compilation job per virtual machine name and waits for each
job before starting the next. Names are `{base}{seq:03d}` for seq 1..N.
Any failure aborts the rest of the sequence; jobs already compiled are
left in place.
"""

import json
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass

from azure.core.exceptions import AzureError
from azure.mgmt.automation.models import (
    DscCompilationJobCreateParameters,
    DscConfigurationAssociationProperty,
)

from azdsc.account_locator import AutomationAccountRef
from azdsc.exceptions import ApiCallError, OperationFailedError
from azdsc.job_poller import COMPILATION_JOB, JobPoller
from azdsc.log_sanitizer import LogSanitizer
from azdsc.session import AutomationSession

logger = logging.getLogger(__name__)


def vm_names(base_name: str, count: int) -> list[str]:
    """Build the sequential VM names for a fleet.

    Args:
        base_name: Name prefix
        count: Number of VMs (>= 1)

    Returns:
        Names with a zero-padded three digit suffix, e.g. web001..web003.
        Suffixes widen naturally past 999.

    Raises:
        ValueError: If base_name is empty or count < 1
    """
    if not base_name:
        raise ValueError("base_name must not be empty")
    if count < 1:
        raise ValueError(f"count must be a positive integer, got {count}")
    return [f"{base_name}{seq:03d}" for seq in range(1, count + 1)]


def build_job_parameters(vm_name: str) -> dict[str, str]:
    """Compilation parameters for one node.

    The node name goes in as the ComputerName parameter and as the single
    AllNodes entry of the configuration data. Plain-text credentials are
    allowed inside the compiled MOF for this node.
    """
    configuration_data = {
        "AllNodes": [
            {
                "NodeName": vm_name,
                "PSDscAllowPlainTextPassword": True,
            }
        ]
    }
    return {
        "ComputerName": vm_name,
        "ConfigurationData": json.dumps(configuration_data),
    }


@dataclass(frozen=True)
class CompilationResult:
    """A completed compilation job."""

    vm_name: str
    job_id: str
    status: str
    polls: int


class CompilationDispatcher:
    """Serially compile a DSC configuration for a fleet of VMs."""

    def __init__(
        self,
        session: AutomationSession,
        account: AutomationAccountRef,
        poller: JobPoller,
        job_name_factory: Callable[[], str] | None = None,
    ):
        self.session = session
        self.account = account
        self.poller = poller
        self.job_name_factory = job_name_factory or (lambda: str(uuid.uuid4()))

    def dispatch(
        self,
        configuration_name: str,
        base_name: str,
        count: int,
        on_result: Callable[[CompilationResult], None] | None = None,
    ) -> list[CompilationResult]:
        """Compile the configuration for every VM name in order.

        Args:
            configuration_name: Published DSC configuration to compile
            base_name: VM name prefix
            count: Number of VMs
            on_result: Optional callback invoked after each successful job

        Returns:
            One CompilationResult per VM, in sequence order

        Raises:
            ApiCallError: If starting or querying a job fails
            OperationFailedError: If a job fails or reports an exception
            UnrecognizedStatusError: If a job reports an unknown status
        """
        names = vm_names(base_name, count)
        results: list[CompilationResult] = []

        for index, vm_name in enumerate(names, start=1):
            logger.info(f"Compiling {configuration_name} for {vm_name} ({index}/{len(names)})")
            result = self.compile_node(configuration_name, vm_name)
            results.append(result)
            if on_result:
                on_result(result)

        return results

    def compile_node(self, configuration_name: str, vm_name: str) -> CompilationResult:
        """Start one compilation job and wait for it to complete."""
        jobs = self.session.client.dsc_compilation_job
        job_name = self.job_name_factory()
        parameters = DscCompilationJobCreateParameters(
            configuration=DscConfigurationAssociationProperty(name=configuration_name),
            parameters=build_job_parameters(vm_name),
            location=self.account.location,
        )

        # polling=False: only the initial PUT; JobPoller does all status queries
        try:
            jobs.begin_create(
                self.account.resource_group, self.account.name, job_name, parameters, polling=False
            )
        except AzureError as e:
            raise ApiCallError(
                LogSanitizer.describe(e, f"Starting compilation job for {vm_name} failed")
            ) from e

        logger.info(f"Started compilation job {job_name} for {vm_name}")
        last_job = [None]

        def fetch_status():
            try:
                job = jobs.get(self.account.resource_group, self.account.name, job_name)
            except AzureError as e:
                raise ApiCallError(
                    LogSanitizer.describe(e, f"Querying compilation job {job_name} failed")
                ) from e
            last_job[0] = job
            return job.status

        try:
            poll = self.poller.wait(job_name, fetch_status, COMPILATION_JOB)
        except OperationFailedError as e:
            raise OperationFailedError(
                e.operation_id, e.status, _job_exception(last_job[0])
            ) from e

        exception = _job_exception(last_job[0])
        if exception:
            raise OperationFailedError(job_name, poll.status, exception)

        logger.info(f"Compilation job {job_name} for {vm_name} completed")
        return CompilationResult(
            vm_name=vm_name, job_id=job_name, status=poll.status, polls=poll.polls
        )


def _job_exception(job) -> str | None:
    if job is None:
        return None
    exception = getattr(job, "exception", None)
    return str(exception) if exception else None

"""
Shared test fixtures for azdsc tests.

This module provides:
- A scripted fake AutomationClient that records every call in order
- Service principal and session fixtures
- A recording sleep stub so polling never waits
"""

from pathlib import Path
from typing import Any
from unittest.mock import Mock

import pytest
from azure.core.exceptions import ResourceNotFoundError

from azdsc.account_locator import AutomationAccountRef
from azdsc.auth_models import ServicePrincipalConfig
from azdsc.job_poller import JobPoller
from azdsc.log_sanitizer import LogSanitizer
from azdsc.session import AutomationSession

TENANT_ID = "12345678-1234-1234-1234-123456789012"
CLIENT_ID = "87654321-4321-4321-4321-210987654321"
SUBSCRIPTION_ID = "abcdef00-0000-0000-0000-000000abcdef"
CLIENT_SECRET = "s3cr3t-value-XYZ"  # noqa: S105 - test fixture, not a real credential


# ============================================================================
# FAKE AUTOMATION CLIENT
# ============================================================================


class FakeAutomationClient:
    """Scripted stand-in for azure.mgmt.automation.AutomationClient.

    job_statuses: one status sequence per compilation job, consumed in
    creation order. module_statuses: provisioning states returned by
    successive module.get calls. Every call is appended to `events`.
    """

    def __init__(
        self,
        job_statuses: list[list[str]] | None = None,
        module_statuses: list[str | None] | None = None,
        account_exists: bool = True,
        job_exceptions: dict[int, str] | None = None,
    ):
        self.events: list[tuple[Any, ...]] = []
        self.job_statuses = [list(s) for s in (job_statuses or [])]
        self.module_statuses = list(module_statuses or [])
        self.job_exceptions = job_exceptions or {}
        self.account_exists = account_exists
        self.jobs: dict[str, dict[str, Any]] = {}
        self.configurations: dict[str, Any] = {}

        self.automation_account = Mock()
        self.automation_account.get.side_effect = self._get_account
        self.module = Mock()
        self.module.create_or_update.side_effect = self._create_module
        self.module.get.side_effect = self._get_module
        self.dsc_configuration = Mock()
        self.dsc_configuration.create_or_update.side_effect = self._put_configuration
        self.dsc_compilation_job = Mock()
        self.dsc_compilation_job.begin_create.side_effect = self._begin_create
        self.dsc_compilation_job.get.side_effect = self._get_job

    def _get_account(self, resource_group, account_name):
        self.events.append(("get_account", resource_group, account_name))
        if not self.account_exists:
            raise ResourceNotFoundError("The Resource was not found")
        return Mock(location="westeurope", id=f"/subscriptions/x/resourceGroups/{resource_group}/automationAccounts/{account_name}")

    def _create_module(self, resource_group, account_name, module_name, parameters):
        self.events.append(("create_module", module_name))
        return Mock()

    def _get_module(self, resource_group, account_name, module_name):
        state = self.module_statuses.pop(0)
        self.events.append(("get_module", module_name, state))
        return Mock(provisioning_state=state, error=Mock(message="module broke") if state == "Failed" else None)

    def _put_configuration(self, resource_group, account_name, name, parameters):
        self.events.append(("put_configuration", name))
        self.configurations[name] = parameters
        return Mock(name=name)

    def _begin_create(self, resource_group, account_name, job_name, parameters, **kwargs):
        index = len(self.jobs)
        vm_name = parameters.parameters["ComputerName"]
        self.jobs[job_name] = {
            "index": index,
            "vm_name": vm_name,
            "statuses": self.job_statuses[index],
            "parameters": parameters,
        }
        self.events.append(("start_job", vm_name))
        return Mock()

    def _get_job(self, resource_group, account_name, job_name):
        job = self.jobs[job_name]
        status = job["statuses"].pop(0)
        self.events.append(("get_job", job["vm_name"], status))
        return Mock(status=status, exception=self.job_exceptions.get(job["index"]))

    @property
    def started_vms(self) -> list[str]:
        return [e[1] for e in self.events if e[0] == "start_job"]


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture(autouse=True)
def clear_registered_secrets():
    """Keep LogSanitizer state from leaking between tests."""
    yield
    LogSanitizer.clear_secrets()


@pytest.fixture
def sp_config():
    """Valid service principal configuration."""
    return ServicePrincipalConfig(
        tenant_id=TENANT_ID,
        client_id=CLIENT_ID,
        subscription_id=SUBSCRIPTION_ID,
        client_secret=CLIENT_SECRET,
    )


@pytest.fixture
def make_client():
    """Factory for scripted fake clients."""
    return FakeAutomationClient


@pytest.fixture
def make_session():
    """Wrap a fake client in an AutomationSession."""

    def _make(client):
        return AutomationSession(
            tenant_id=TENANT_ID,
            subscription_id=SUBSCRIPTION_ID,
            credential=Mock(),
            client=client,
        )

    return _make


@pytest.fixture
def fake_client():
    """Fake client where every job completes on the first poll."""
    return FakeAutomationClient(job_statuses=[["Completed"]] * 10)


@pytest.fixture
def session(fake_client):
    """Session wrapping the fake client."""
    return AutomationSession(
        tenant_id=TENANT_ID,
        subscription_id=SUBSCRIPTION_ID,
        credential=Mock(),
        client=fake_client,
    )


@pytest.fixture
def account():
    """Resolved automation account."""
    return AutomationAccountRef(resource_group="rg-automation", name="aa-test", location="westeurope")


@pytest.fixture
def sleeps():
    """List recording every sleep the poller performs."""
    return []


@pytest.fixture
def poller(sleeps):
    """Poller that records sleeps instead of waiting."""
    return JobPoller(interval=10, sleep=sleeps.append)


@pytest.fixture
def dsc_script(tmp_path) -> Path:
    """A small DSC configuration script."""
    path = tmp_path / "WebServer.ps1"
    path.write_text(
        "Configuration WebServer {\n"
        "    Node $AllNodes.NodeName {\n"
        "        WindowsFeature IIS { Ensure = 'Present'; Name = 'Web-Server' }\n"
        "    }\n"
        "}\n"
    )
    return path

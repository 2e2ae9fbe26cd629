"""azdsc - Azure Automation DSC provisioning CLI

Philosophy:
- Ruthless simplicity
- Fail fast with one exit code
- No credentials in code or config files

azdsc authenticates with a service principal, publishes a DSC
configuration to an Azure Automation account and compiles it for a fleet
of sequentially named VMs, one job at a time.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]

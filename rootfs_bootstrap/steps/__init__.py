from .step_10_install_base import InstallBaseStep
from .step_20_install_packages import InstallPackagesStep

__all__ = [
    "InstallBaseStep",
    "InstallPackagesStep",
]

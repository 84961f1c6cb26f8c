from .step_10_disable_ipv6 import DisableIPv6Step
from .step_20_enable_multilib import EnableMultilibStep
from .step_30_base_packages import BasePackagesStep
from .step_35_aur_helper import AurHelperStep
from .step_40_gpu_drivers import GpuDriversStep
from .step_50_applications import ApplicationsStep
from .step_55_display_manager import DisplayManagerStep
from .step_60_disable_baloo import DisableBalooStep
from .step_70_shell import ShellStep
from .step_80_containers import ContainersStep
from .step_85_node_runtime import NodeRuntimeStep
from .step_90_finalize import FinalizeStep

__all__ = [
    "DisableIPv6Step",
    "EnableMultilibStep",
    "BasePackagesStep",
    "AurHelperStep",
    "GpuDriversStep",
    "ApplicationsStep",
    "DisplayManagerStep",
    "DisableBalooStep",
    "ShellStep",
    "ContainersStep",
    "NodeRuntimeStep",
    "FinalizeStep",
]

from .step_10_check_model import CheckModelStep
from .step_20_resolve_requirements import ResolveRequirementsStep
from .step_25_acquire_snaps import AcquireSnapsStep
from .step_30_derive_side_info import DeriveSideInfoStep
from .step_40_copy_snaps import CopySnapsStep
from .step_50_write_assertions import WriteAssertionsStep
from .step_55_write_meta import WriteMetaStep
from .step_60_make_bootable import MakeBootableStep

__all__ = [
    "CheckModelStep",
    "ResolveRequirementsStep",
    "AcquireSnapsStep",
    "DeriveSideInfoStep",
    "CopySnapsStep",
    "WriteAssertionsStep",
    "WriteMetaStep",
    "MakeBootableStep",
]

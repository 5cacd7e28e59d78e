"""Work unit types and partitioning for parallel search."""

from .types import WorkUnit
from .partitioning import partition, validate_partition, default_unit_size, make_unit_id

__all__ = [
    "WorkUnit",
    "partition",
    "validate_partition",
    "default_unit_size",
    "make_unit_id",
]

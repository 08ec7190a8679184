"""Atomic group services."""

from .group import Group, new_group
from .handles import Reader, Writer
from .operate import OperateState, Operation
from .record import MetadataRecord

__all__ = [
    "Group",
    "new_group",
    "Reader",
    "Writer",
    "MetadataRecord",
    "Operation",
    "OperateState",
]

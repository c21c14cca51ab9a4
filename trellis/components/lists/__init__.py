"""
Lists component - ordered lists inside a board.
"""

from ._impl import InvalidListError, ListService
from .component import run, run_create, run_delete, run_get
from .models import CreateListInput, DeleteListInput, GetListsInput, ListOutput
from .ports import BoardRepoPort, ClockPort, ListRepoPort

__all__ = [
    "run",
    "run_create",
    "run_get",
    "run_delete",
    "ListService",
    "InvalidListError",
    "CreateListInput",
    "GetListsInput",
    "DeleteListInput",
    "ListOutput",
    "BoardRepoPort",
    "ClockPort",
    "ListRepoPort",
]

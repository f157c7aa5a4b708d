"""Handler configuration."""

from dataclasses import dataclass

from pydantic import BaseModel

from lockstep.router.types import OperationFunc


@dataclass
class Handler:
    """An operation name bound to its payload model and handler."""

    name: str
    payload_model: type[BaseModel]
    handler_func: OperationFunc

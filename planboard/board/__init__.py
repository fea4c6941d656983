"""Framework-independent planning board: drag state, controller, gateways."""

from planboard.board.controller import BoardController  # noqa: F401
from planboard.board.gateway import ServiceGateway  # noqa: F401

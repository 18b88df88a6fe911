"""Exceptions raised by zmem."""


class ZmemError(Exception):
    """Base class for zmem errors."""


class ConfigError(ZmemError):
    """Invalid setting in the environment or on the command line."""


class ProcessTableError(ZmemError):
    """The process table directory could not be listed."""


class MeminfoError(ZmemError):
    """The host memory report could not be read or parsed."""


class ProcessUnavailable(ZmemError):
    """A single process could not be read.

    The process exited after it was listed, its files are permission
    restricted, or its memory map could not be decoded.
    """

    def __init__(self, pid: int, reason: str) -> None:
        super().__init__(f"pid {pid}: {reason}")
        self.pid = pid
        self.reason = reason

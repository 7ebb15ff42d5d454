"""Command groups and commands for the Lyrica CLI.

Mounted by lyrica.cli.
"""

from . import config as config  # noqa: F401
from . import diag as diag  # noqa: F401
from . import lyrics as lyrics  # noqa: F401
from . import serve as serve  # noqa: F401
from . import watch as watch  # noqa: F401

__all__ = [
    "config",
    "diag",
    "lyrics",
    "serve",
    "watch",
]

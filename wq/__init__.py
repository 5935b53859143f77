__version__ = "0.1.0"

from .core.logger import setup_logger

__all__ = [
    "__version__",
    "setup_logger",
]

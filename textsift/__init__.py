# textsift - bounded, query-aware text sifting
# Version: 1.0

from .modules import *  # noqa: F401,F403
from .modules import __all__ as _module_exports
from .sift import load_config, setup_logging, sift_text

__version__ = "1.0.0"

__all__ = [*_module_exports, "load_config", "setup_logging", "sift_text"]

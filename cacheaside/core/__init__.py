"""Core: settings, constants, shared context and bootstrap.

Single place for configuration and the process-wide DataServicesContext.
"""

from cacheaside.core.config import Settings, get_settings
from cacheaside.core.context import DataServicesContext

__all__ = ["DataServicesContext", "Settings", "get_settings"]

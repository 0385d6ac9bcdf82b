from .loader import load_settings
from .schema import LookupSettings

__all__ = ["LookupSettings", "load_settings"]

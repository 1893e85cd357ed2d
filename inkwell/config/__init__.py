from .loader import load_config
from .models import (
    BuildConfig,
    ContentConfig,
    LinkConfig,
    PublishConfig,
)

__all__ = [
    "BuildConfig",
    "ContentConfig",
    "LinkConfig",
    "PublishConfig",
    "load_config",
]

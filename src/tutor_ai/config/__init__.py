from .loader import load_settings
from .schema import LoggingConfig, ModelConfig, PathsConfig, RetryConfig, Settings, SupabaseConfig

__all__ = [
    "load_settings",
    "Settings",
    "ModelConfig",
    "RetryConfig",
    "SupabaseConfig",
    "PathsConfig",
    "LoggingConfig",
]

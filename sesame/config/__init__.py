from .config import Config, GeminiConfig, Settings, StorageConfig

__all__ = ["Config", "GeminiConfig", "Settings", "StorageConfig"]

from .pipeline import get_pipeline_config, get_pipeline_value
from .settings import Settings, settings

__all__ = ["Settings", "settings", "get_pipeline_config", "get_pipeline_value"]

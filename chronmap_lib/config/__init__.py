from .config import ChronMapConfig, StoreConfig, load_config, parse_config

__all__ = ["ChronMapConfig", "StoreConfig", "load_config", "parse_config"]

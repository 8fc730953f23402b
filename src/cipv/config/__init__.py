from .cipv_config import CipvConfig

__all__ = ['CipvConfig']

from .flag_cache import FlagCache, FlagSnapshot

__all__ = ["FlagCache", "FlagSnapshot"]

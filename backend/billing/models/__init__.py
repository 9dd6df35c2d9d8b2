from .volatile import VolatileEntry

__all__ = [
    'VolatileEntry',
]

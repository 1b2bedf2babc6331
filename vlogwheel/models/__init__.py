from .snapshot import WheelSnapshot

__all__ = [
    "WheelSnapshot",
]

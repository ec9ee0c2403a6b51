from . import dispatch

__all__ = ["dispatch"]

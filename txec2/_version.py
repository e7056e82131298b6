# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

from incremental import Version

__version__ = Version("txEC2", 0, 1, 0)
__all__ = ["__version__"]

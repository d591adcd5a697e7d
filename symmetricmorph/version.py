"""Runtime version; ``setup.py`` reads the same ``ENGINE_VERSION`` constant."""

from .engine import SymmetricMorph

__version__ = SymmetricMorph.ENGINE_VERSION

__all__ = ["__version__"]

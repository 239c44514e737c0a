"""TurboLearn study-material generation core."""

__version__ = '1.0.0'

"""Read, check and convert Doxygen navigation-tree fragments."""

__version__ = "0.1.0"

"""Greymap reading and writing, LZW compression, units, name tables and option parsing for a vector tracer."""

__version__ = "0.1.0"

__all__ = ["catalog", "greymap", "greyread", "lzw", "options", "units"]
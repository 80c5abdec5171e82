"""tillrules: discount campaign engine for point-of-sale carts."""

__version__ = "0.1.0"

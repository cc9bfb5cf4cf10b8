"""Browse, page through and export Parquet files kept in an object store."""

from .core.constants import VERSION

__version__ = VERSION

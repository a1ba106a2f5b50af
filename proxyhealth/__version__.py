__version__ = "1.2.0"
__version_info__ = (1, 2, 0)
__release_date__ = "12.10.2026"

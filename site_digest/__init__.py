"""
SiteDigest package initializer.
Defines package version.
"""
__version__ = "1.1.0"

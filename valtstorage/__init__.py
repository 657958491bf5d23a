"""
ValtStorage CLI: upload, share, download and verify files on valtstorage.cloud.
"""

__version__ = "1.0.0"

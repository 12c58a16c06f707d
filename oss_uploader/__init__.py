"""
oss-uploader

Command-line uploader for Aliyun OSS: uploads files and directory trees with
optional content-hashed names, writes a JSON mapping of uploaded assets, and
provides bucket listing, deletion, info and interactive prefix browsing.

This package provides modular components for each concern:
- client: typed adapter over the oss2 SDK
- uploader: batch upload, content hashing and the mapping file
- browser: interactive prefix browser
- utils: logging, configuration, formatting and metrics
"""

__version__ = "0.1.0"

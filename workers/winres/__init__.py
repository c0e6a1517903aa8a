"""
winres — Windows resource compiler pipeline.

Generate a resource script (.rc) from a manifest, compile it with the
Windows SDK ``rc.exe`` or GNU ``windres``, and (GNU only) archive the
object into ``libresource.a`` for the link step.
"""

__version__ = "0.1.0"
PACKAGE_NAME = "winres"
PIPELINE_VERSION = "v1"
SCHEMA_VERSION = "0.1"

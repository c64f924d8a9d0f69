# karaoke_remix/server/__init__.py
"""
HTTP server package: the rewrite pipeline and the aiohttp application
"""

from .pipeline import RewritePipeline, RewriteInput, RewriteOutput, parse_rewrite_input
from .app import create_app, run_server

__all__ = [
    'RewritePipeline',
    'RewriteInput',
    'RewriteOutput',
    'parse_rewrite_input',
    'create_app',
    'run_server',
]

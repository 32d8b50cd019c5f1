"""
HTTP front end for snapshot filesystems.
"""

from .api_server import APIHandler, create_app
from .config import Config, load_config, save_config

__all__ = ['APIHandler', 'create_app', 'Config', 'load_config', 'save_config']

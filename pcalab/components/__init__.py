"""
System components for pcalab.

Configuration and the HTTP server.
"""

from pcalab.components.config import Config, ConfigManager

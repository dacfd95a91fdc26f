"""
System components for tbclust.
"""

from tbclust.components.config import Config, ConfigManager

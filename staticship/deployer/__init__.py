"""
Deploy orchestration module.

Validation, path optimization, SPA auto-configuration and upload, in order.
"""

from .deployer import DeployOrchestrator, DeployState
from .spa import SPA_CONFIG_FILENAME, create_spa_config, detect_and_configure_spa, detect_spa

__all__ = [
    "DeployOrchestrator",
    "DeployState",
    "SPA_CONFIG_FILENAME",
    "create_spa_config",
    "detect_and_configure_spa",
    "detect_spa",
]

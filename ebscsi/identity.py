"""Identity service: the plugin's name, version and capabilities."""

from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)

DRIVER_NAME = "ebs.csi.aws.com"


class PluginCapability(str, Enum):
    """Service capabilities the plugin advertises."""

    CONTROLLER_SERVICE = "CONTROLLER_SERVICE"
    VOLUME_ACCESSIBILITY_CONSTRAINTS = "VOLUME_ACCESSIBILITY_CONSTRAINTS"


def get_plugin_info(vendor_version: str) -> dict[str, str]:
    """Return the plugin name and the given vendor version."""
    logger.debug("GetPluginInfo: called")
    return {"name": DRIVER_NAME, "vendor_version": vendor_version}


def get_plugin_capabilities() -> list[PluginCapability]:
    """Return the capabilities of the plugin, controller service first."""
    logger.debug("GetPluginCapabilities: called")
    return [
        PluginCapability.CONTROLLER_SERVICE,
        PluginCapability.VOLUME_ACCESSIBILITY_CONSTRAINTS,
    ]


def probe() -> dict[str, object]:
    """Answer a health probe with an empty response."""
    logger.debug("Probe: called")
    return {}
"""Driver options and the functions that set them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    """Which services the driver runs."""

    CONTROLLER = "controller"
    NODE = "node"
    ALL = "all"


@dataclass
class DriverOptions:
    """Settings that shape how the driver behaves."""

    endpoint: str = ""
    extra_tags: dict[str, str] | None = None
    mode: Mode | str = Mode.ALL
    volume_attach_limit: int = 0
    kubernetes_cluster_id: str = ""
    aws_sdk_debug_log: bool = False
    warn_on_invalid_tag: bool = False


Option = Callable[[DriverOptions], None]


def with_endpoint(endpoint: str) -> Option:
    def apply(options: DriverOptions) -> None:
        options.endpoint = endpoint

    return apply


def with_extra_tags(extra_tags: dict[str, str] | None) -> Option:
    def apply(options: DriverOptions) -> None:
        options.extra_tags = extra_tags

    return apply


def with_extra_volume_tags(extra_volume_tags: dict[str, str] | None) -> Option:
    """Deprecated: sets the extra tags only when none were set already."""

    def apply(options: DriverOptions) -> None:
        if options.extra_tags is None and extra_volume_tags is not None:
            logger.info(
                "DEPRECATION WARNING: --extra-volume-tags is deprecated, please use --extra-tags instead"
            )
            options.extra_tags = extra_volume_tags

    return apply


def with_mode(mode: Mode | str) -> Option:
    def apply(options: DriverOptions) -> None:
        options.mode = mode

    return apply


def with_volume_attach_limit(volume_attach_limit: int) -> Option:
    def apply(options: DriverOptions) -> None:
        options.volume_attach_limit = volume_attach_limit

    return apply


def with_kubernetes_cluster_id(cluster_id: str) -> Option:
    def apply(options: DriverOptions) -> None:
        options.kubernetes_cluster_id = cluster_id

    return apply


def with_aws_sdk_debug_log(enable_sdk_debug_log: bool) -> Option:
    def apply(options: DriverOptions) -> None:
        options.aws_sdk_debug_log = enable_sdk_debug_log

    return apply


def with_warn_on_invalid_tag(warn_on_invalid_tag: bool) -> Option:
    def apply(options: DriverOptions) -> None:
        options.warn_on_invalid_tag = warn_on_invalid_tag

    return apply


def build_options(*args: Option) -> DriverOptions:
    """Apply option functions in order to the defaults and check the mode.

    Raises ValueError when the resulting mode is not a known one.
    """
    options = DriverOptions()
    for option in args:
        option(options)
    try:
        options.mode = Mode(options.mode)
    except ValueError:
        raise ValueError(f"unknown mode: {options.mode}") from None
    return options
"""Vendor resolver - find git-dogfood's own entry in the shared vendor registry.

Convention over configuration: git-dogfood is always registered under one fixed
key, so resolution is a direct lookup. No attribute scanning, no ambiguity.

The registry is owned by the vendoring framework; this module only reads a
snapshot of it and never writes back.
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .exceptions import RegistryUnavailableError
from .schema import VendorRegistry

logger = logging.getLogger(__name__)

CANONICAL_VENDOR_KEY = "git-dogfood"
DEFAULT_REGISTRY_PATH = Path(".vendored") / "config.json"
OUTPUT_NAME = "vendor"


def load_registry(path: Path = DEFAULT_REGISTRY_PATH) -> VendorRegistry:
    """
    Load the vendor registry document.

    Args:
        path: Path to the registry JSON file

    Returns:
        Parsed VendorRegistry

    Raises:
        RegistryUnavailableError: If the file is missing, unreadable, not JSON,
            or does not have the registry shape
    """
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise RegistryUnavailableError(f"Vendor registry not found: {path}", context={"path": str(path)}) from e
    except (OSError, ValueError) as e:
        raise RegistryUnavailableError(
            f"Could not read vendor registry {path}: {e}", context={"path": str(path)}
        ) from e

    try:
        return VendorRegistry.model_validate(data)
    except ValidationError as e:
        raise RegistryUnavailableError(
            f"Invalid vendor registry {path}: {e.error_count()} validation error(s)",
            context={"path": str(path)},
        ) from e


def resolve_vendor(registry: VendorRegistry | Mapping[str, Any] | None) -> str | None:
    """
    Return the canonical vendor key if the registry has an entry for it.

    Pure function of the registry snapshot. Accepts a parsed VendorRegistry or the
    raw JSON mapping.

    Returns:
        CANONICAL_VENDOR_KEY if present in the vendor mapping, None otherwise
        (no registry, no vendor mapping, or only unrelated vendors)
    """
    if registry is None:
        return None

    if isinstance(registry, VendorRegistry):
        vendors: Any = registry.vendors
    else:
        vendors = registry.get("vendors")

    if not isinstance(vendors, Mapping):
        return None
    return CANONICAL_VENDOR_KEY if CANONICAL_VENDOR_KEY in vendors else None


def resolve_from_file(path: Path = DEFAULT_REGISTRY_PATH) -> str | None:
    """Resolve against the registry at ``path``; a missing or malformed registry means no match."""
    try:
        registry = load_registry(path)
    except RegistryUnavailableError as e:
        logger.debug(f"No vendor resolved: {e.message}")
        return None

    key = resolve_vendor(registry)
    if key is None:
        logger.debug(f"{CANONICAL_VENDOR_KEY} is not registered in {path}")
    return key


def render_output(key: str) -> str:
    """Render a resolved key as the single ``name=value`` line CI steps consume."""
    return f"{OUTPUT_NAME}={key}"

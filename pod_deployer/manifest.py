"""Pod manifest helpers - YAML codec, label sync, snapshots."""

import copy
from typing import Any

import yaml

from .exceptions import ManifestError


class _QuotedDumper(yaml.SafeDumper):
    """Safe dumper that double-quotes every string scalar."""


def _represent_quoted_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style='"')


_QuotedDumper.add_representer(str, _represent_quoted_str)


def parse_manifest(text: str) -> dict[str, Any]:
    """
    Parse a generated kube manifest into its structured form.

    Only the first document is kept; generated manifests for a single pod
    carry one Pod document.

    Args:
        text: YAML text

    Returns:
        Manifest dict

    Raises:
        ManifestError: If the text is not valid YAML or not a mapping
    """
    try:
        documents = [doc for doc in yaml.safe_load_all(text) if doc is not None]
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid manifest YAML: {e}") from e

    if not documents or not isinstance(documents[0], dict):
        raise ManifestError("Manifest must be a YAML mapping")

    manifest = documents[0]
    sync_app_label(manifest)
    return manifest


def render_manifest(manifest: dict[str, Any], flow_style: bool = True) -> str:
    """
    Render a manifest for display.

    Strings are double-quoted and lines are never wrapped.

    Args:
        manifest: Manifest dict
        flow_style: Render collections in flow style

    Returns:
        YAML text
    """
    return yaml.dump(
        manifest,
        Dumper=_QuotedDumper,
        default_flow_style=flow_style,
        sort_keys=False,
        width=float("inf"),
    )


def pod_name(manifest: dict[str, Any]) -> str:
    """Return ``metadata.name`` or an empty string."""
    return (manifest.get("metadata") or {}).get("name") or ""


def sync_app_label(manifest: dict[str, Any]) -> dict[str, Any]:
    """
    Keep ``metadata.labels.app`` equal to ``metadata.name``.

    Only applies when the manifest has labels. Must be called after every
    mutation of the name or labels.
    """
    metadata = manifest.get("metadata")
    if not metadata:
        return manifest
    labels = metadata.get("labels")
    if labels is not None:
        labels["app"] = metadata.get("name", "")
    return manifest


def set_pod_name(manifest: dict[str, Any], name: str) -> dict[str, Any]:
    """Rename the pod and resync its app label."""
    manifest.setdefault("metadata", {})["name"] = name
    return sync_app_label(manifest)


def set_labels(manifest: dict[str, Any], labels: dict[str, str]) -> dict[str, Any]:
    """Replace the pod labels and resync its app label."""
    manifest.setdefault("metadata", {})["labels"] = dict(labels)
    return sync_app_label(manifest)


def snapshot(manifest: dict[str, Any]) -> dict[str, Any]:
    """Deep copy of a manifest, used to roll back local state."""
    return copy.deepcopy(manifest)


def restore(manifest: dict[str, Any], saved: dict[str, Any]) -> dict[str, Any]:
    """Replace the content of ``manifest`` in place with ``saved``."""
    manifest.clear()
    manifest.update(copy.deepcopy(saved))
    return manifest


def iter_container_ports(manifest: dict[str, Any]):
    """Yield ``(container, port)`` pairs in manifest order."""
    for container in (manifest.get("spec") or {}).get("containers") or []:
        for port in container.get("ports") or []:
            yield container, port

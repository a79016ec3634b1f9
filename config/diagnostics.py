"""Diagnostics routines for the configuration subsystem."""

from __future__ import annotations

from pathlib import Path

import yaml

from diagnostics.models import DiagnosticResult, DiagnosticStatus


def probe(base_dir: Path | None = None) -> DiagnosticResult:
    """Run a configuration probe to validate config files and presence settings.

    Args:
        base_dir: Optional base directory for offline testing.

    Returns:
        Diagnostic result indicating config readiness.
    """

    from config.controller import load_config_files
    from vision.pipeline import PresenceSettings

    name = "config"
    try:
        root_dir = base_dir if base_dir is not None else Path.cwd()
        config_dir = root_dir / "config"
        default_config = config_dir / "default.yaml"
        override_config = config_dir / "override.yaml"

        if not config_dir.exists():
            return DiagnosticResult(
                name=name,
                status=DiagnosticStatus.FAIL,
                details=f"Config directory missing at {config_dir}",
            )

        if not default_config.exists():
            return DiagnosticResult(
                name=name,
                status=DiagnosticStatus.FAIL,
                details=f"Missing default config at {default_config}",
            )

        config = load_config_files(default_config, override_config)

        settings = PresenceSettings.from_config(config)
    except OSError as exc:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Config access failed: {exc}",
        )
    except (yaml.YAMLError, TypeError, ValueError, AttributeError) as exc:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Invalid presence config: {exc}",
        )

    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details=(
            f"Config files readable at {config_dir} "
            f"(threshold={settings.confidence_threshold:.2f})"
        ),
    )

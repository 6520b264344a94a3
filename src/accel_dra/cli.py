"""Command line entry point for the accelerator DRA controller."""

from __future__ import annotations

import os
import signal
import threading
from pathlib import Path
from typing import Any, Optional

import click

from accel_dra.domain.value_objects.identifiers import DRIVER_NAME
from accel_dra.infrastructure.config import Config, get_config
from accel_dra.infrastructure.container import Container
from accel_dra.ports.outbound import SliceStoreError
from accel_dra.version import get_full_version


def install_signal_handlers(stop_event: threading.Event) -> None:
    """Set stop_event on SIGINT/SIGTERM; a second signal exits immediately."""

    def _handler(signum: int, frame: Any) -> None:
        if stop_event.is_set():
            os._exit(1)
        stop_event.set()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


def apply_overrides(config: Config, **overrides: Any) -> Config:
    """Return a copy of config with the CLI values that were given."""
    sections: dict[str, dict[str, Any]] = {}
    mapping = {
        "driver_name": ("driver", "name"),
        "node_name": ("driver", "node_name"),
        "sysfs_path": ("discovery", "sysfs_path"),
        "rescan_interval": ("discovery", "rescan_interval_seconds"),
        "kubeconfig": ("kubernetes", "kubeconfig"),
        "dry_run": ("kubernetes", "dry_run"),
        "metrics_port": ("server", "metrics_port"),
        "log_level": ("observability", "log_level"),
        "log_format": ("observability", "log_format"),
    }
    for option, value in overrides.items():
        if value is None:
            continue
        section, field = mapping[option]
        sections.setdefault(section, {})[field] = value

    updated = {
        section: getattr(config, section).model_copy(update=fields)
        for section, fields in sections.items()
    }
    return config.model_copy(update=updated)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--driver-name", default=None, help=f"DRA driver name (default: {DRIVER_NAME}).")
@click.option("--node-name", envvar="NODE_NAME", default=None, help="Node to publish devices for (env: NODE_NAME).")
@click.option("--sysfs-path", type=click.Path(path_type=Path), default=None, help="Device class directory.")
@click.option("--rescan-interval", type=click.FloatRange(min=0, min_open=True), default=None, help="Seconds between device rescans.")
@click.option("--kubeconfig", type=click.Path(path_type=Path, exists=True, dir_okay=False), default=None, help="Kubeconfig file; in-cluster config if unset.")
@click.option("--dry-run", is_flag=True, default=False, help="Keep ResourceSlices in memory instead of the API server.")
@click.option("--metrics-port", type=click.IntRange(1, 65535), default=None, help="Prometheus metrics port.")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False), default=None)
@click.option("--log-format", type=click.Choice(["json", "console"]), default=None)
@click.option("--version", "show_version", is_flag=True, help="Show version and exit.")
def main(show_version: bool, **options: Optional[Any]) -> None:
    """Discover mock-accel devices and publish them as ResourceSlices."""
    if show_version:
        click.echo(f"mock-accel DRA driver version {get_full_version()}")
        return

    # Unset flags must not override the environment
    options["dry_run"] = options["dry_run"] or None
    if options.get("log_level"):
        options["log_level"] = options["log_level"].upper()
    config = apply_overrides(get_config(), **options)
    if not config.driver.node_name:
        raise click.UsageError("NODE_NAME environment variable or --node-name must be set")

    container = Container.create(config, serve_metrics=True)
    logger = container.logger
    logger.info(
        "starting",
        version=get_full_version(),
        driver=config.driver.name,
        node=config.driver.node_name,
        sysfs_path=str(config.discovery.sysfs_path),
    )

    try:
        reconciler = container.build_reconciler()
    except SliceStoreError as e:
        raise click.ClickException(str(e)) from e

    stop_event = threading.Event()
    install_signal_handlers(stop_event)
    reconciler.run(stop_event)
    logger.info("exiting")


if __name__ == "__main__":
    main()

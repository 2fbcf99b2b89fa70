#!/usr/bin/env python3
"""
nist-time-sync: keep the system clock on NIST time

Main entry point. This program:
1. Connects to a NIST daytime server (TCP port 13)
2. Parses the reply into an authoritative UTC instant
3. Writes that instant to the system clock (needs root / administrator)
4. Sleeps for the configured interval and repeats

Usage:
    # Sync every 60 minutes in the foreground
    sudo python -m nist_time_sync

    # Sync every 15 minutes from a specific server
    sudo python -m nist_time_sync --interval 15 --server time-a-g.nist.gov

    # Register as a systemd service
    sudo python -m nist_time_sync --install --interval 30

Run modes:
    FOREGROUND       scheduler on the main thread, Ctrl+C stops it
    MANAGED_SERVICE  scheduler wrapped by ServiceLifecycleController,
                     state reported to systemd (started with --service)

Exit codes:
    0  stopped cleanly
    1  sync failed (network, reply format, permission, platform)
    2  configuration error
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

# Set up logging before imports that use it
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger('nist-time-sync')

from . import __version__
from .config import SyncConfig, load_config
from .engine.sync_scheduler import SyncScheduler
from .errors import ConfigError, ServiceInstallError, SyncError
from .output.clock_setter import get_clock_setter
from .service.installer import ServiceInstaller
from .service.lifecycle import RunMode, ServiceLifecycleController, run_foreground
from .service.systemd_host import SystemdServiceHost
from .timing.daytime_client import DaytimeClient

EXIT_OK = 0
EXIT_SYNC_ERROR = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='nist-time-sync',
        description='nist-time-sync: sync the system clock with NIST servers',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Sync every hour (default)
    sudo nist-time-sync

    # Sync every 5 minutes without touching the clock
    nist-time-sync --interval 5 --dry-run

    # Install / remove the systemd service
    sudo nist-time-sync --install --interval 30
    sudo nist-time-sync --uninstall
        """
    )

    parser.add_argument(
        '--interval', '-i',
        type=int,
        help='Minutes between syncs (default: 60)'
    )
    parser.add_argument(
        '--config', '-c',
        help='Path to TOML configuration file'
    )
    parser.add_argument(
        '--server',
        help='Time server as HOST[:PORT] (default: time.nist.gov:13)'
    )
    parser.add_argument(
        '--service',
        action='store_true',
        help='Run as a managed systemd service (sd_notify state reporting; Linux only)'
    )
    parser.add_argument(
        '--install',
        action='store_true',
        help='Install and start the systemd service'
    )
    parser.add_argument(
        '--uninstall',
        action='store_true',
        help='Stop and remove the systemd service'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Fetch and parse time but do not set the clock'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    return parser


def resolve_config(args: argparse.Namespace) -> SyncConfig:
    """Load the config file and apply command-line overrides."""
    config = SyncConfig.from_dict(load_config(args.config))
    if args.server:
        config = config.with_server(args.server)
    if args.interval is not None:
        config = config.with_interval(args.interval)
    return config


def build_scheduler(config: SyncConfig, dry_run: bool = False) -> SyncScheduler:
    client = DaytimeClient(config.host, config.port, timeout=config.timeout)
    clock_setter = get_clock_setter(dry_run=dry_run)
    return SyncScheduler(client, clock_setter, poll_interval=config.poll_interval)


def manage_service(args: argparse.Namespace, config: SyncConfig) -> int:
    """Handle --install / --uninstall."""
    installer = ServiceInstaller(config.service_name, config.unit_dir)
    try:
        if args.install:
            extra_args = []
            if args.config:
                extra_args += ['--config', args.config]
            if args.server:
                extra_args += ['--server', args.server]
            installer.install(config.interval.minutes, extra_args=extra_args)
            print("Service installed")
        else:
            installer.uninstall()
            print("Service uninstalled")
    except ServiceInstallError as e:
        print(e)
        return EXIT_SYNC_ERROR
    return EXIT_OK


def run(config: SyncConfig, mode: RunMode, dry_run: bool = False) -> int:
    """Run the sync loop in the given mode."""
    scheduler = build_scheduler(config, dry_run=dry_run)

    logger.info("=" * 60)
    logger.info(f"nist-time-sync {__version__} starting")
    logger.info(f"  Server: {config.server_address}")
    logger.info(f"  Interval: {config.interval.describe()}")
    logger.info(f"  Mode: {mode.value}")
    logger.info(f"  Clock setter: {getattr(scheduler.clock_setter, 'name', type(scheduler.clock_setter).__name__)}")
    logger.info("=" * 60)

    try:
        if mode is RunMode.MANAGED_SERVICE:
            if sys.platform.startswith('win'):
                logger.warning("--service reports state to systemd only; no Windows service manager host")
            host = SystemdServiceHost(service_name=config.service_name)
            controller = ServiceLifecycleController(scheduler, config.interval, host)
            previous = host.install_signal_handlers(controller)
            try:
                controller.run()
            finally:
                for signum, handler in previous.items():
                    signal.signal(signum, handler)
        else:
            run_foreground(scheduler, config.interval)
    except SyncError:
        # Already logged by the scheduler
        return EXIT_SYNC_ERROR

    logger.info(f"Stopped after {scheduler.sync_count} syncs")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = resolve_config(args)
    except ConfigError as e:
        logger.error(str(e))
        return EXIT_CONFIG_ERROR

    if args.install and args.uninstall:
        logger.error("--install and --uninstall are mutually exclusive")
        return EXIT_CONFIG_ERROR
    if args.install or args.uninstall:
        return manage_service(args, config)

    mode = RunMode.MANAGED_SERVICE if args.service else RunMode.FOREGROUND
    return run(config, mode, dry_run=args.dry_run)


if __name__ == '__main__':
    sys.exit(main())

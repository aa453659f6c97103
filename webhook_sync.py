#!/usr/bin/env python3
"""
Kick Webhook Sync - one-shot reconciliation of Kick webhook subscriptions.

Commands:
    sync         reconcile, then wait for the verification audit
    audit        only verify the current subscriptions
    reset        run the "Reset Webhook Subscriptions" maintenance flow
    unsubscribe  delete every subscription (integration teardown)

Usage:
    python webhook_sync.py --config config/config.yaml sync
    KICK_ACCESS_TOKEN=... python webhook_sync.py audit

Exit code 0 on success, 1 on failure.
"""

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import yaml

from core.message_types import SystemEvent
from core.notifier import Notifier
from kickapi.connection import KickWebhookConnection
from kickapi.maintenance import reset_subscriptions_and_reconnect
from kickapi.transports.http_client import DEFAULT_TIMEOUT, KICK_API_SERVER
from kickapi.webhook_subscription_manager import AUDIT_DELAY, CREATE_AFTER_DELETE_DELAY

LOGGER = logging.getLogger("webhook_sync")

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s %(message)s"


# ============================================================================
# Configuration
# ============================================================================

@dataclass
class WebhookSyncConfig:
    """Kick webhook sync configuration."""
    access_token: str = ""
    broadcaster_user_id: int = 0
    api_server: str = KICK_API_SERVER
    http_timeout: float = DEFAULT_TIMEOUT
    create_delay: float = CREATE_AFTER_DELETE_DELAY
    audit_delay: float = AUDIT_DELAY
    log_level: str = "INFO"

    @classmethod
    def from_yaml(cls, yaml_config: Optional[dict]) -> "WebhookSyncConfig":
        """Load configuration from YAML config dict."""
        yaml_config = yaml_config or {}
        kick_cfg = yaml_config.get("kick") or {}
        webhooks_cfg = yaml_config.get("webhooks") or {}
        logging_cfg = yaml_config.get("logging") or {}

        return cls(
            access_token=os.getenv("KICK_ACCESS_TOKEN") or kick_cfg.get("access_token", ""),
            broadcaster_user_id=int(kick_cfg.get("broadcaster_user_id", 0) or 0),
            api_server=kick_cfg.get("api_server", KICK_API_SERVER),
            http_timeout=float(kick_cfg.get("http_timeout", DEFAULT_TIMEOUT)),
            create_delay=webhooks_cfg.get("create_delay_ms", CREATE_AFTER_DELETE_DELAY * 1000) / 1000.0,
            audit_delay=float(webhooks_cfg.get("audit_delay", AUDIT_DELAY)),
            log_level=str(logging_cfg.get("level", "INFO")).upper(),
        )

    @classmethod
    def load(cls, path: str) -> "WebhookSyncConfig":
        """Read a YAML file; a missing file only works with KICK_ACCESS_TOKEN set."""
        config_path = Path(path)
        if not config_path.exists():
            LOGGER.warning(f"⚠️ Config file not found: {path}, using defaults")
            return cls.from_yaml({})
        with open(config_path, "r") as f:
            return cls.from_yaml(yaml.safe_load(f))


# ============================================================================
# Commands
# ============================================================================

async def _log_notification(event: SystemEvent):
    LOGGER.info(f"🔔 [{event.kind}] {event.payload.get('message', '')}")


async def run(command: str, config: WebhookSyncConfig) -> int:
    notifier = Notifier(_log_notification)

    connection = KickWebhookConnection(
        token=config.access_token,
        broadcaster_user_id=config.broadcaster_user_id,
        notifier=notifier,
        api_server=config.api_server,
        http_timeout=config.http_timeout,
        create_delay=config.create_delay,
        audit_delay=config.audit_delay,
    )
    manager = connection.manager
    exit_code = 0

    try:
        if command == "sync":
            try:
                await connection.connect()
            except Exception as e:
                LOGGER.error(f"❌ Sync failed: {e}")
                return 1
            LOGGER.info(f"⏳ Waiting {config.audit_delay}s for the verification audit...")
            healthy = await manager.audit_task if manager.audit_task is not None else False
            exit_code = 0 if healthy else 1

        elif command == "audit":
            exit_code = 0 if await manager.audit_subscriptions() else 1

        elif command == "reset":
            result = await reset_subscriptions_and_reconnect(connection, manager, notifier)
            exit_code = 0 if result["success"] else 1

        elif command == "unsubscribe":
            await manager.unsubscribe_from_events()

        else:
            LOGGER.error(f"❌ Unknown command: {command}")
            exit_code = 1
    finally:
        await connection.disconnect()
        await notifier.flush()

    return exit_code


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Kick Webhook Sync - reconcile webhook subscriptions")
    parser.add_argument(
        "--config",
        type=str,
        default="config/config.yaml",
        help="Path to config file"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Override logging level (DEBUG, INFO, WARNING...)"
    )
    parser.add_argument(
        "command",
        choices=["sync", "audit", "reset", "unsubscribe"],
        help="Action to run"
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config = WebhookSyncConfig.load(args.config)

    logging.basicConfig(
        level=(args.log_level or config.log_level).upper(),
        format=LOG_FORMAT,
    )

    if not config.access_token:
        LOGGER.error("❌ No Kick access token (kick.access_token or KICK_ACCESS_TOKEN)")
        return 1

    LOGGER.info(
        f"🔧 Webhook sync config: server={config.api_server}, "
        f"broadcaster={config.broadcaster_user_id}, audit_delay={config.audit_delay}s"
    )

    try:
        return asyncio.run(run(args.command, config))
    except KeyboardInterrupt:
        LOGGER.info("🛑 Interrupted")
        return 1


if __name__ == "__main__":
    sys.exit(main())

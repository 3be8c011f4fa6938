"""RabbitMQ publishers for workspace audit events."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import pika

from ..config import AppConfig
from .models import AuditAction, AuditEvent, AuditOutcome

LOGGER = logging.getLogger(__name__)


class RabbitMQPublisher:
    """Utility for publishing JSON messages to the workspace events exchange."""

    def __init__(self, config: AppConfig) -> None:
        self._exchange = config.rabbitmq.exchange
        self._parameters = pika.URLParameters(config.rabbitmq.url)

    def publish(
        self,
        routing_key: str,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Publish an event to the shared exchange."""

        connection: Optional[pika.BlockingConnection] = None
        try:
            connection = pika.BlockingConnection(self._parameters)
            channel = connection.channel()
            channel.basic_publish(
                exchange=self._exchange,
                routing_key=routing_key,
                body=json.dumps(payload).encode("utf-8"),
                properties=pika.BasicProperties(
                    content_type="application/json",
                    delivery_mode=2,
                    headers=headers or {},
                ),
            )
            LOGGER.debug(
                "Published event", extra={"routing_key": routing_key, "payload": payload}
            )
        except Exception:
            LOGGER.exception(
                "Failed to publish event", extra={"routing_key": routing_key, "payload": payload}
            )
            raise
        finally:
            if connection and connection.is_open:
                connection.close()


class AuditEventPublisher:
    """Publish structured audit events for provisioning and reconciliation outcomes.

    Publishing never fails the operation being audited: broker errors are
    logged and dropped. With ``enabled=False`` events are only logged.
    """

    def __init__(
        self,
        publisher: Optional[RabbitMQPublisher],
        routing_key: str = "audit.workspace.event",
        enabled: bool = True,
    ) -> None:
        self._publisher = publisher
        self._routing_key = routing_key
        self._enabled = enabled and publisher is not None

    def publish(
        self,
        key: str,
        action: AuditAction,
        outcome: AuditOutcome,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        event = AuditEvent(
            key=key,
            action=action,
            outcome=outcome,
            timestamp=datetime.now(timezone.utc).isoformat(),
            details={name: value for name, value in (details or {}).items() if value is not None},
        )
        if not self._enabled:
            LOGGER.info(
                "Audit event (publishing disabled)",
                extra={"key": key, "action": action.value, "outcome": outcome.value},
            )
            return
        try:
            self._publisher.publish(self._routing_key, event.to_payload())
        except Exception:
            LOGGER.exception(
                "Failed to publish audit event", extra={"key": key, "action": action.value}
            )


__all__ = ["RabbitMQPublisher", "AuditEventPublisher"]

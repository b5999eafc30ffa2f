"""Audit helpers for friend requests & friendships."""

from __future__ import annotations

import logging
from typing import Dict

from schedle.obs import metrics as obs_metrics

logger = logging.getLogger("schedle.audit.social")


def log_invite_event(event: str, fields: Dict[str, str]) -> None:
	logger.info("invite_event", extra={"event": event, **fields})


def log_friend_event(event: str, fields: Dict[str, str]) -> None:
	logger.info("friend_event", extra={"event": event, **fields})


def inc_request_sent(result: str) -> None:
	obs_metrics.inc_friend_request_sent(result)


def inc_request_accept() -> None:
	obs_metrics.inc_friend_request_accept()


def inc_request_decline() -> None:
	obs_metrics.inc_friend_request_decline()


def inc_removed() -> None:
	obs_metrics.inc_friend_removed()


def inc_send_reject(reason: str) -> None:
	obs_metrics.inc_friend_request_sent(reason)

"""Process-wide service instances, built once per app from its config."""

from __future__ import annotations

from flask import Flask, current_app

from club_lottery.services.draw_guard import DrawGuard
from club_lottery.services.notifications import (
    EmailSender,
    LoggingEmailSender,
    NotificationDispatcher,
    ResendEmailSender,
)
from club_lottery.services.orchestrator import DrawOrchestrator
from club_lottery.services.randomness import RandomOrgClient
from club_lottery.services.renewal import SubscriptionRenewalService
from club_lottery.services.settlement import SettlementEngine


def build_email_sender(config: dict) -> EmailSender:
    api_key = str(config.get("RESEND_API_KEY") or "")
    if not api_key:
        return LoggingEmailSender()
    return ResendEmailSender(
        api_key,
        str(config["EMAIL_FROM"]),
        url=str(config["RESEND_API_URL"]),
        timeout_seconds=float(config["EMAIL_TIMEOUT_SECONDS"]),
    )


def init_services(app: Flask) -> None:
    """Wire the draw services into ``app.extensions``.

    The guard must be shared by every request in the process, so the
    orchestrator is built here rather than per request.
    """

    config = app.config
    dispatcher = NotificationDispatcher(
        build_email_sender(config),
        admin_email=str(config["ADMIN_EMAIL"]),
        lottery_name=str(config["LOTTERY_NAME"]),
        delay_seconds=float(config["EMAIL_SEND_DELAY_SECONDS"]),
    )
    provider = RandomOrgClient(
        str(config.get("RANDOM_ORG_API_KEY") or ""),
        url=str(config["RANDOM_ORG_URL"]),
        timeout_seconds=float(config["RANDOM_ORG_TIMEOUT_SECONDS"]),
        lottery_name=str(config["LOTTERY_NAME"]),
    )
    engine = SettlementEngine(
        int(config["LUCKY_DIP_WINNERS"]),
        one_per_subscriber=bool(config["LUCKY_DIP_ONE_PER_SUBSCRIBER"]),
    )

    app.extensions["notification_dispatcher"] = dispatcher
    app.extensions["draw_orchestrator"] = DrawOrchestrator(
        provider=provider,
        engine=engine,
        dispatcher=dispatcher,
        guard=DrawGuard(float(config["DRAW_GUARD_COOLDOWN_SECONDS"])),
        lucky_dip_amount=int(config["LUCKY_DIP_AMOUNT"]),
        default_jackpot=int(config["DEFAULT_JACKPOT"]),
    )
    app.extensions["renewal_service"] = SubscriptionRenewalService()


def get_orchestrator() -> DrawOrchestrator:
    return current_app.extensions["draw_orchestrator"]


def get_dispatcher() -> NotificationDispatcher:
    return current_app.extensions["notification_dispatcher"]


def get_renewal_service() -> SubscriptionRenewalService:
    return current_app.extensions["renewal_service"]

"""Winner and admin notifications for a settled draw."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol

import requests
from jinja2 import Environment, PackageLoader, select_autoescape

from club_lottery.errors import NotificationSendError
from club_lottery.models.draw import LotteryDraw
from club_lottery.rules import JACKPOT_MATCHES
from club_lottery.services.settlement import EntryResult, PrizeTier

logger = logging.getLogger(__name__)

# Resend allows two requests per second on the default plan.
MIN_SEND_DELAY_SECONDS = 0.6


@dataclass(frozen=True)
class EmailMessage:
    to: list[str]
    subject: str
    html: str


class EmailSender(Protocol):
    def send(self, message: EmailMessage) -> None: ...


class ResendEmailSender:
    """Deliver email through the Resend HTTP API."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        *,
        url: str = "https://api.resend.com/emails",
        timeout_seconds: float = 10.0,
        http: requests.Session | None = None,
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._url = url
        self._timeout_seconds = timeout_seconds
        self._http = http or requests.Session()

    def send(self, message: EmailMessage) -> None:
        payload = {
            "from": self._sender,
            "to": list(message.to),
            "subject": message.subject,
            "html": message.html,
        }
        try:
            resp = self._http.post(
                self._url,
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._timeout_seconds,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise NotificationSendError(
                message=f"Failed to send email to {', '.join(message.to)}",
                details={"reason": str(exc)},
            ) from exc


class LoggingEmailSender:
    """Log instead of sending; used when no email provider is configured."""

    def send(self, message: EmailMessage) -> None:
        logger.info("Email (not sent) to=%s subject=%r", ", ".join(message.to), message.subject)


@dataclass(frozen=True)
class WinnerNotice:
    user_id: str
    matches: int
    prize_amount: int
    is_lucky_dip: bool = False
    numbers: list[int] = field(default_factory=list)

    @property
    def is_jackpot(self) -> bool:
        return self.matches == JACKPOT_MATCHES and not self.is_lucky_dip


@dataclass(frozen=True)
class DispatchReport:
    success: bool
    jackpot_winners: int
    lucky_dip_winners: int
    total_winners: int
    emails_attempted: int
    emails_failed: int
    draw_date: date | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "success": self.success,
            "jackpot_winners": self.jackpot_winners,
            "lucky_dip_winners": self.lucky_dip_winners,
            "total_winners": self.total_winners,
            "emails_attempted": self.emails_attempted,
            "emails_failed": self.emails_failed,
            "draw_date": self.draw_date.isoformat() if self.draw_date else None,
        }


def _default_templates() -> Environment:
    return Environment(
        loader=PackageLoader("club_lottery", "templates"),
        autoescape=select_autoescape(["html"]),
    )


class NotificationDispatcher:
    """Send the admin summary and one email per winner, one at a time.

    Sends are spaced by at least ``MIN_SEND_DELAY_SECONDS`` to stay under the
    provider's rate limit; a lower ``delay_seconds`` is raised to it. A
    message that fails to render or send is logged and counted; it never
    stops the batch.
    """

    def __init__(
        self,
        sender: EmailSender,
        *,
        admin_email: str,
        lottery_name: str = "Club Lottery",
        delay_seconds: float = MIN_SEND_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        templates: Environment | None = None,
    ) -> None:
        self._sender = sender
        self._admin_email = admin_email
        self._lottery_name = lottery_name
        self._delay_seconds = max(MIN_SEND_DELAY_SECONDS, float(delay_seconds))
        self._sleep = sleep
        self._templates = templates or _default_templates()

    @property
    def delay_seconds(self) -> float:
        return self._delay_seconds

    def dispatch(
        self,
        draw: LotteryDraw,
        winners: Iterable[WinnerNotice],
        contacts: Mapping[str, str],
        *,
        notify_winners: bool = True,
    ) -> DispatchReport:
        """Notify the admin and (optionally) each winner of ``draw``.

        ``contacts`` maps user id to email address; winners missing from it
        are skipped with a log line.
        """

        winners = list(winners)
        jackpot = [w for w in winners if w.is_jackpot]
        lucky_dip = [w for w in winners if w.is_lucky_dip]

        logger.info(
            "Dispatching notifications for draw %s (%s): %d jackpot, %d lucky dip",
            draw.id,
            draw.draw_date.isoformat(),
            len(jackpot),
            len(lucky_dip),
        )

        failed = 0
        summary_subject = (
            f"{'[TEST] ' if draw.is_test else ''}Lottery Draw Results - "
            f"{draw.draw_date.isoformat()} - {len(winners)} Winners"
        )
        summary_context = {
            "draw": draw,
            "winners": winners,
            "jackpot_count": len(jackpot),
            "lucky_dip_count": len(lucky_dip),
            "contacts": contacts,
        }
        summary_template = "emails/draw_summary.html"
        if not self._deliver(self._admin_email, summary_subject, summary_template, summary_context, pause=False):
            failed += 1

        attempted = 0
        if notify_winners:
            for template, subject, group in (
                ("emails/jackpot_winner.html", "JACKPOT WINNER! £{amount} - {name}", jackpot),
                ("emails/lucky_dip_winner.html", "LUCKY DIP WINNER! £{amount} Prize - {name}", lucky_dip),
            ):
                for winner in group:
                    email = contacts.get(winner.user_id)
                    if not email:
                        logger.warning("No email found for winner %s", winner.user_id)
                        continue
                    attempted += 1
                    context = {"draw": draw, "winner": winner, "email": email}
                    winner_subject = subject.format(amount=winner.prize_amount, name=self._lottery_name)
                    if not self._deliver(email, winner_subject, template, context, pause=True):
                        failed += 1

        logger.info("Finished notifications for draw %s: %d attempted, %d failed", draw.id, attempted, failed)
        return DispatchReport(
            success=True,
            jackpot_winners=len(jackpot),
            lucky_dip_winners=len(lucky_dip),
            total_winners=len(winners),
            emails_attempted=attempted,
            emails_failed=failed,
            draw_date=draw.draw_date,
        )

    def _render(self, template_name: str, **context: object) -> str:
        return self._templates.get_template(template_name).render(lottery_name=self._lottery_name, **context)

    def _deliver(
        self,
        to: str,
        subject: str,
        template_name: str,
        context: Mapping[str, object],
        *,
        pause: bool,
    ) -> bool:
        """Render and send one message; any failure is logged and reported as ``False``."""

        if pause:
            self._sleep(self._delay_seconds)

        try:
            message = EmailMessage(to=[to], subject=subject, html=self._render(template_name, **context))
            self._sender.send(message)
        except NotificationSendError as exc:
            logger.error("%s: %s", exc.message, exc.details)
            return False
        except Exception:
            logger.exception("Email to %s could not be rendered or sent", to)
            return False
        logger.info("Email sent to %s", to)
        return True


def winners_from_outcome(results: Iterable[EntryResult]) -> list[WinnerNotice]:
    notices: list[WinnerNotice] = []
    for r in results:
        if not r.is_winner:
            continue
        notices.append(
            WinnerNotice(
                user_id=r.entry.user_id,
                matches=r.match_count,
                prize_amount=r.prize_amount,
                is_lucky_dip=r.tier is PrizeTier.LUCKY_DIP,
                numbers=list(r.entry.numbers),
            )
        )
    return notices

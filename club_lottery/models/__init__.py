"""ORM models."""

from club_lottery.models.draw import LotteryDraw
from club_lottery.models.entry import EntryOrigin, LotteryEntry
from club_lottery.models.result import LotteryResult
from club_lottery.models.setting import LotterySetting
from club_lottery.models.subscriber import Subscriber

__all__ = [
    "EntryOrigin",
    "LotteryDraw",
    "LotteryEntry",
    "LotteryResult",
    "LotterySetting",
    "Subscriber",
]

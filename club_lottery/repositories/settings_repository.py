"""Repository layer for key/value lottery settings."""

from __future__ import annotations

from sqlalchemy.orm import Session

from club_lottery.models.setting import LotterySetting

CURRENT_JACKPOT = "current_jackpot"
NEXT_DRAW_DATE = "next_draw_date"


class SettingsRepository:
    def get(self, session: Session, key: str, default: str | None = None) -> str | None:
        row = session.get(LotterySetting, key)
        return row.setting_value if row is not None else default

    def set(self, session: Session, key: str, value: str) -> LotterySetting:
        row = session.get(LotterySetting, key)
        if row is None:
            row = LotterySetting(setting_key=key, setting_value=str(value))
            session.add(row)
        else:
            row.setting_value = str(value)
        session.flush()
        return row

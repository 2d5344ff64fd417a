"""
Feature flags backing the automation kill-switch.

Resolution for a channel: the global ``ai_enabled`` flag must not be off, then
``ai_<channel>_enabled`` decides; missing rows fall back to AI_ENABLED_DEFAULT.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from .config import AI_ENABLED_DEFAULT
from .models import FeatureFlag

logger = logging.getLogger(__name__)

GLOBAL_AI_FLAG = "ai_enabled"


def channel_flag_key(channel: str) -> str:
    return f"ai_{channel}_enabled"


class FeatureFlagRepository:
    """Repository for feature flag database operations"""

    @staticmethod
    def get_flag(db: Session, key: str) -> Optional[FeatureFlag]:
        return db.query(FeatureFlag).filter(FeatureFlag.key == key).first()

    @staticmethod
    def list_flags(db: Session) -> list[FeatureFlag]:
        return db.query(FeatureFlag).order_by(FeatureFlag.key).all()

    @staticmethod
    def set_flag(db: Session, key: str, enabled: bool) -> FeatureFlag:
        """Upsert a flag; caller commits"""
        flag = FeatureFlagRepository.get_flag(db, key)
        if flag:
            flag.enabled = enabled
            flag.updated_at = datetime.utcnow()
        else:
            flag = FeatureFlag(key=key, enabled=enabled)
            db.add(flag)
        db.flush()
        return flag

    @staticmethod
    def is_ai_enabled_for_channel(db: Session, channel: str) -> bool:
        global_flag = FeatureFlagRepository.get_flag(db, GLOBAL_AI_FLAG)
        if global_flag is not None and not global_flag.enabled:
            return False

        channel_flag = FeatureFlagRepository.get_flag(db, channel_flag_key(channel))
        if channel_flag is not None:
            return bool(channel_flag.enabled)
        if global_flag is not None:
            return bool(global_flag.enabled)
        return AI_ENABLED_DEFAULT


def database_kill_switch(db: Session) -> Callable[[str], bool]:
    """Kill-switch lookup bound to a session, for injection into the evaluators"""

    def lookup(channel: str) -> bool:
        enabled = FeatureFlagRepository.is_ai_enabled_for_channel(db, channel)
        if not enabled:
            logger.debug(f"AI kill-switch is off for channel {channel}")
        return enabled

    return lookup

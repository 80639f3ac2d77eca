# medilens/services/preference_service.py
import re
from typing import Dict, Optional

from sqlalchemy.orm import Session

from medilens import models
from medilens.core.errors import ValidationError

KEY_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_.-]{0,63}$")


class PreferenceStore:
    """
    Key-value store for one user's UI flags (tutorial or welcome dismissal
    and the like).
    """

    def __init__(self, db: Session, user_id: str):
        self.db = db
        self.user_id = user_id

    @staticmethod
    def check_key(key: str) -> str:
        if not KEY_PATTERN.match(key or ""):
            raise ValidationError("Preference keys are 1-64 lowercase letters, digits, '_', '.' or '-'")
        return key

    def _row(self, key: str) -> Optional[models.UserPreference]:
        return (
            self.db.query(models.UserPreference)
            .filter(
                models.UserPreference.user_id == self.user_id,
                models.UserPreference.key == key,
            )
            .first()
        )

    def get(self, key: str) -> Optional[str]:
        row = self._row(self.check_key(key))
        return row.value if row else None

    def set(self, key: str, value: str) -> str:
        row = self._row(self.check_key(key))
        if row is None:
            row = models.UserPreference(user_id=self.user_id, key=key, value=value)
            self.db.add(row)
        else:
            row.value = value
        self.db.commit()
        return value

    def delete(self, key: str) -> bool:
        row = self._row(self.check_key(key))
        if row is None:
            return False
        self.db.delete(row)
        self.db.commit()
        return True

    def all(self) -> Dict[str, str]:
        rows = (
            self.db.query(models.UserPreference)
            .filter(models.UserPreference.user_id == self.user_id)
            .order_by(models.UserPreference.key)
            .all()
        )
        return {row.key: row.value for row in rows}

from datetime import datetime, timezone
from typing import Dict, List, Optional

from ..schemas.fitting import FittingProfile, MeasurementSet, TryOnEntry


class ProfileStore:
    """In-memory fitting profiles keyed by user id.

    Try-on history is append-only: entries are frozen and are only ever added
    or removed whole. Replace with a persistent store in production.
    """

    def __init__(self) -> None:
        self._profiles: Dict[str, FittingProfile] = {}

    def __len__(self) -> int:
        return len(self._profiles)

    def get(self, user_id: str) -> Optional[FittingProfile]:
        return self._profiles.get(user_id)

    def upsert(self, user_id: str, measurements: Optional[MeasurementSet] = None, user_image: Optional[str] = None) -> FittingProfile:
        profile = self._profiles.get(user_id)
        if profile is None:
            profile = FittingProfile(user=user_id)
            self._profiles[user_id] = profile
        if measurements is not None:
            # Partial updates keep previously recorded regions
            profile.measurements = {**profile.measurements, **measurements}
        if user_image is not None:
            profile.user_image = user_image
        profile.updated_at = datetime.now(tz=timezone.utc)
        return profile

    def append_entry(self, user_id: str, entry: TryOnEntry) -> None:
        profile = self._profiles[user_id]
        profile.fitted_products.append(entry)
        profile.updated_at = datetime.now(tz=timezone.utc)

    def history(self, user_id: str) -> List[TryOnEntry]:
        profile = self._profiles.get(user_id)
        if profile is None:
            return []
        # Entries are appended in chronological order; newest first
        return list(reversed(profile.fitted_products))

    def delete_entry(self, user_id: str, entry_id: str) -> bool:
        profile = self._profiles.get(user_id)
        if profile is None:
            return False
        remaining = [e for e in profile.fitted_products if e.id != entry_id]
        if len(remaining) == len(profile.fitted_products):
            return False
        profile.fitted_products = remaining
        profile.updated_at = datetime.now(tz=timezone.utc)
        return True

    def clear(self) -> None:
        self._profiles.clear()


store = ProfileStore()

"""User redaction profiles persisted in ~/.agentwatch/contrib/profiles.json."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from filelock import FileLock
from pydantic import ValidationError

from agentwatch.config.paths import get_profiles_path
from agentwatch.profiles.builtin import (
    BUILTIN_PROFILE_IDS,
    BUILTIN_PROFILES,
    DEFAULT_PROFILE_ID,
    RedactionProfile,
    get_builtin_profile,
)

logger = logging.getLogger(__name__)


class ProfileError(Exception):
    """A profile cannot be saved, deleted or activated."""


class UnknownProfileError(ProfileError, KeyError):
    """No built-in or user profile has the requested id."""

    def __init__(self, profile_id: str) -> None:
        super().__init__(profile_id)
        self.profile_id = profile_id

    def __str__(self) -> str:
        return f"Unknown redaction profile: {self.profile_id}"


class ProfileStore:
    """Read/write user profiles and the active profile id.

    Built-in profiles are always listed first and can be neither
    overwritten nor deleted. Writes are atomic and serialized with a
    file lock.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or get_profiles_path()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = FileLock(str(self._path) + ".lock")

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Failed to read %s: %s", self._path.name, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(json.dumps(data, indent=2) + "\n")
                f.flush()
                os.fsync(f.fileno())
            Path(tmp).replace(self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def _user_profiles(self, data: dict[str, Any]) -> list[RedactionProfile]:
        profiles = []
        for entry in data.get("profiles", []):
            try:
                profile = RedactionProfile.model_validate(entry)
            except ValidationError as e:
                logger.warning("Skipping invalid stored profile: %s", e)
                continue
            if profile.id in BUILTIN_PROFILE_IDS:
                continue
            profiles.append(profile.model_copy(update={"builtin": False}))
        return profiles

    def list_profiles(self) -> list[RedactionProfile]:
        with self._lock:
            data = self._read()
        return [*BUILTIN_PROFILES, *self._user_profiles(data)]

    def get(self, profile_id: str) -> RedactionProfile | None:
        builtin = get_builtin_profile(profile_id)
        if builtin is not None:
            return builtin
        with self._lock:
            data = self._read()
        return next((p for p in self._user_profiles(data) if p.id == profile_id), None)

    def save(self, profile: RedactionProfile) -> RedactionProfile:
        """Create or replace a user profile."""
        if profile.id in BUILTIN_PROFILE_IDS:
            raise ProfileError(f"Cannot overwrite built-in profile: {profile.id}")
        stored = profile.model_copy(update={"builtin": False, "is_default": False})
        with self._lock:
            data = self._read()
            profiles = [p for p in self._user_profiles(data) if p.id != stored.id]
            profiles.append(stored)
            data["profiles"] = [p.to_dict() for p in profiles]
            self._write(data)
        logger.info("Saved redaction profile %s", stored.id)
        return stored

    def delete(self, profile_id: str) -> bool:
        """Delete a user profile.

        Returns:
            True if the profile was removed, False if it did not exist.
        """
        if profile_id in BUILTIN_PROFILE_IDS:
            raise ProfileError(f"Cannot delete built-in profile: {profile_id}")
        with self._lock:
            data = self._read()
            profiles = self._user_profiles(data)
            remaining = [p for p in profiles if p.id != profile_id]
            if len(remaining) == len(profiles):
                return False
            data["profiles"] = [p.to_dict() for p in remaining]
            if data.get("active") == profile_id:
                data.pop("active")
            self._write(data)
        logger.info("Deleted redaction profile %s", profile_id)
        return True

    def set_active(self, profile_id: str) -> RedactionProfile:
        profile = self.get(profile_id)
        if profile is None:
            raise UnknownProfileError(profile_id)
        with self._lock:
            data = self._read()
            data["active"] = profile_id
            self._write(data)
        return profile

    def get_active(self) -> RedactionProfile:
        """The active profile, or the default when none is set.

        An active id that no longer resolves raises UnknownProfileError.
        """
        with self._lock:
            data = self._read()
        active = data.get("active")
        if not active:
            return resolve_profile(DEFAULT_PROFILE_ID, self)
        return resolve_profile(active, self)


def resolve_profile(
    profile_id: str, store: ProfileStore | None = None
) -> RedactionProfile:
    """Look up a profile by id, failing closed on unknown ids."""
    profile = (
        store.get(profile_id) if store is not None else get_builtin_profile(profile_id)
    )
    if profile is None:
        raise UnknownProfileError(profile_id)
    return profile

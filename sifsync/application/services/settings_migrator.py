import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from ...core import constants
from ...exceptions import MigrationFailedError
from .settings_defaults import default_sections

logger = logging.getLogger(__name__)

MigrationStep = Callable[[Dict[str, Any]], Dict[str, Any]]


class CorruptedSettingsError(Exception):
    pass


def _migrate_to_v1(data: Dict[str, Any]) -> Dict[str, Any]:
    if not data.get("uid"):
        raise CorruptedSettingsError("document has no uid")
    for section, defaults in default_sections().items():
        if data.get(section) is None:
            data[section] = defaults
    return data


# Keyed by the version a step upgrades *from*; each step lands on from + 1.
MIGRATIONS: Dict[int, MigrationStep] = {
    0: _migrate_to_v1,
}


class MigrationStatus(str, Enum):
    MIGRATED = "migrated"
    NO_MIGRATION_NEEDED = "no_migration_needed"
    FAILED = "failed"


@dataclass(frozen=True)
class MigrationResult:
    status: MigrationStatus
    document: Optional[Dict[str, Any]] = None
    error: Optional[MigrationFailedError] = None

    @property
    def succeeded(self) -> bool:
        return self.status is MigrationStatus.MIGRATED


@dataclass
class SettingsMigrator:
    target_version: int = constants.CURRENT_SETTINGS_VERSION
    steps: Mapping[int, MigrationStep] = field(default_factory=lambda: dict(MIGRATIONS))
    now: Callable[[], datetime] = lambda: datetime.now(timezone.utc)

    def needs_migration(self, current_version: int) -> bool:
        return current_version < self.target_version

    def migrate(self, raw: Mapping[str, Any], current_version: int) -> MigrationResult:
        if not self.needs_migration(current_version):
            return MigrationResult(MigrationStatus.NO_MIGRATION_NEEDED)
        if current_version < 0:
            return MigrationResult(
                MigrationStatus.FAILED,
                error=MigrationFailedError(current_version, current_version + 1, "unsupported version"),
            )

        document = copy.deepcopy(dict(raw))
        for version in range(current_version, self.target_version):
            step = self.steps.get(version)
            if step is None:
                logger.error(f"No settings migration registered from version {version}")
                return MigrationResult(
                    MigrationStatus.FAILED,
                    error=MigrationFailedError(version, version + 1, "unsupported version"),
                )
            try:
                document = step(document)
            except Exception as e:
                logger.error(f"Settings migration {version} -> {version + 1} failed: {e}")
                return MigrationResult(
                    MigrationStatus.FAILED,
                    error=MigrationFailedError(version, version + 1, str(e) or type(e).__name__),
                )
            document["version"] = version + 1
            document["lastUpdated"] = self.now().isoformat()

        logger.info(f"Migrated settings from version {current_version} to {self.target_version}")
        return MigrationResult(MigrationStatus.MIGRATED, document=document)

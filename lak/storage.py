import json
import logging
import os
from datetime import datetime

from lak.constants import (
    PROGRAM_STORAGE,
    PROFILE_FILE,
    TEMPLATES_FILE,
    ACTIVITIES_FILE,
    SETTINGS_FILE
)
from lak.errors import BackupError
from lak.models import DailyRecord, Profile, Template
from lak.templates import DEFAULT_TEMPLATES

logger = logging.getLogger(__name__)

STORAGE_ERRORS = (OSError, TypeError, ValueError)


def load_data(filepath, default):
    if os.path.exists(filepath):
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except STORAGE_ERRORS:
            logger.exception("Gagal membaca %s", filepath)
            return default
    else:
        save_data(filepath, default)
        return default


def save_data(filepath, data):
    try:
        folder = os.path.dirname(filepath)
        if folder and not os.path.exists(folder):
            os.makedirs(folder)

        # serialize first so a bad payload never truncates the file
        text = json.dumps(data, ensure_ascii=False, indent=4)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(text)
        return True
    except STORAGE_ERRORS:
        logger.exception("Gagal menyimpan %s", filepath)
        return False


def remove_data(filepath):
    try:
        if os.path.exists(filepath):
            os.remove(filepath)
        return True
    except OSError:
        logger.exception("Gagal menghapus %s", filepath)
        return False


def _expect(value, kind, label):
    if not isinstance(value, kind):
        raise TypeError(f"{label}: diharapkan {kind.__name__}, didapat {type(value).__name__}")
    return value


def _parse_record(date, data):
    """DailyRecord for a stored entry, or None when the entry is malformed."""
    try:
        return DailyRecord.from_dict(_expect(data, dict, date), date=date)
    except (AttributeError, TypeError, ValueError):
        logger.exception("Data tanggal %s rusak, dilewati", date)
        return None


def _parse_records(activities):
    records = {}
    for date, data in activities.items():
        record = _parse_record(date, data)
        if record is not None:
            records[date] = record
    return records


def default_templates():
    return [t.to_dict() for t in DEFAULT_TEMPLATES]


class Storage:
    """Date-keyed daily records plus profile, templates and settings.

    Each logical key lives in its own JSON file under ``folder``. Write
    failures are logged and reported as ``False``; callers treat that as
    "not saved".
    """

    def __init__(self, folder=PROGRAM_STORAGE):
        self.folder = folder

    def _path(self, filename):
        return os.path.join(self.folder, filename)

    def initialize(self):
        os.makedirs(self.folder, exist_ok=True)
        self.get_profile()
        self.get_templates()
        self.get_settings()
        load_data(self._path(ACTIVITIES_FILE), {})

    # ----- daily records -----

    def _load_activities(self):
        data = load_data(self._path(ACTIVITIES_FILE), {})
        return data if isinstance(data, dict) else {}

    def get(self, date):
        data = self._load_activities().get(date)
        if not data:
            return None
        return _parse_record(date, data)

    def set(self, date, record):
        activities = self._load_activities()
        activities[date] = record.to_dict()
        return save_data(self._path(ACTIVITIES_FILE), activities)

    def delete(self, date):
        activities = self._load_activities()
        if date not in activities:
            return True
        del activities[date]
        return save_data(self._path(ACTIVITIES_FILE), activities)

    def all_records(self):
        return _parse_records(self._load_activities())

    def list_in_range(self, year, month):
        prefix = f"{year}-{int(month):02d}"
        activities = self._load_activities()
        return _parse_records({d: v for d, v in activities.items() if d.startswith(prefix)})

    def replace_records(self, records):
        payload = {date: record.to_dict() for date, record in records.items()}
        return save_data(self._path(ACTIVITIES_FILE), payload)

    def merge_records(self, records):
        activities = self._load_activities()
        for date, record in records.items():
            activities[date] = record.to_dict()
        return save_data(self._path(ACTIVITIES_FILE), activities)

    # ----- profile, templates, settings -----

    def get_profile(self):
        data = load_data(self._path(PROFILE_FILE), Profile().to_dict())
        return Profile.from_dict(data if isinstance(data, dict) else {})

    def save_profile(self, profile):
        return save_data(self._path(PROFILE_FILE), profile.to_dict())

    def get_templates(self):
        data = load_data(self._path(TEMPLATES_FILE), default_templates())
        if not isinstance(data, list):
            return [Template.from_dict(t) for t in default_templates()]
        return [Template.from_dict(t) for t in data if isinstance(t, dict)]

    def save_templates(self, templates):
        return save_data(self._path(TEMPLATES_FILE), [t.to_dict() for t in templates])

    def get_settings(self):
        data = load_data(self._path(SETTINGS_FILE), {})
        return data if isinstance(data, dict) else {}

    def save_settings(self, settings):
        return save_data(self._path(SETTINGS_FILE), settings)

    def update_settings(self, **values):
        settings = self.get_settings()
        settings.update(values)
        return self.save_settings(settings)

    # ----- backup & restore -----

    def export_all_data(self):
        return {
            "profile": self.get_profile().to_dict(),
            "templates": [t.to_dict() for t in self.get_templates()],
            "activities": self._load_activities(),
            "exportDate": datetime.now().isoformat(),
        }

    def import_all_data(self, data):
        """Restore each top-level key that is present, independently.

        A present key replaces the stored value even when it is empty. Every
        present key is validated before anything is written.
        """
        if not isinstance(data, dict):
            return False
        try:
            profile = templates = records = None
            if "profile" in data:
                profile = Profile.from_dict(_expect(data["profile"], dict, "profile"))
            if "templates" in data:
                templates = [
                    Template.from_dict(_expect(t, dict, "template"))
                    for t in _expect(data["templates"], list, "templates")
                ]
            if "activities" in data:
                records = {
                    date: DailyRecord.from_dict(_expect(day, dict, date), date=date)
                    for date, day in _expect(data["activities"], dict, "activities").items()
                }
        except (AttributeError, TypeError, ValueError):
            logger.exception("Data impor tidak valid")
            return False

        ok = True
        if profile is not None:
            ok = self.save_profile(profile) and ok
        if templates is not None:
            ok = self.save_templates(templates) and ok
        if records is not None:
            ok = self.replace_records(records) and ok
        return ok

    def write_backup(self, filepath):
        if not save_data(filepath, self.export_all_data()):
            raise BackupError(f"Gagal menulis backup ke {filepath}")
        return filepath

    def read_backup(self, filepath):
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise BackupError(f"File backup tidak valid: {e}") from e
        if not isinstance(data, dict):
            raise BackupError("File backup tidak valid")
        if not self.import_all_data(data):
            raise BackupError("Gagal menerapkan data backup")
        return data

    def clear_all(self):
        results = [
            remove_data(self._path(name))
            for name in (PROFILE_FILE, TEMPLATES_FILE, ACTIVITIES_FILE, SETTINGS_FILE)
        ]
        return all(results)

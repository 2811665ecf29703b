from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional

from lak.constants import (
    DAY_NAMES,
    CODE_GENERAL_CLINIC,
    CODE_SPECIALIST_CLINIC,
    CODE_MEETING,
    CODE_SICK_LEAVE,
    CODE_NATIONAL_HOLIDAY,
    REMARK_DUTY,
    REMARK_SICK_LEAVE,
    REMARK_NATIONAL_HOLIDAY,
    DEFAULT_VOLUME,
    MEETING_START,
    MEETING_END,
    NO_TIME
)
from lak.errors import SundayNotAllowed, StorageError, TemplateNotFound
from lak.models import ActivityEntry, DailyRecord, DayType, calculate_minutes
from lak.templates import (
    TEMPLATE_WITH_ASSEMBLY,
    TEMPLATE_PREPARATION,
    TEMPLATE_SATURDAY
)

# ==================================================
# Jadwal per hari
# ==================================================


class Schedule(Enum):
    HOLIDAY = "holiday"
    SHORT_HOURS = "short-hours"
    WITH_ASSEMBLY = "with-assembly"
    PREPARATION = "preparation"


SCHEDULE_TEMPLATES = {
    Schedule.HOLIDAY: None,
    Schedule.SHORT_HOURS: TEMPLATE_SATURDAY,
    Schedule.WITH_ASSEMBLY: TEMPLATE_WITH_ASSEMBLY,
    Schedule.PREPARATION: TEMPLATE_PREPARATION,
}

SCHEDULE_LABELS = {
    Schedule.HOLIDAY: "Hari Libur",
    Schedule.SHORT_HOURS: "Sabtu (Jam Pendek)",
    Schedule.WITH_ASSEMBLY: "Hari Kerja (Apel)",
    Schedule.PREPARATION: "Hari Kerja (Persiapan)",
}

DAY_TYPE_LABELS = {
    DayType.MEETING: "Rapat / Kegiatan Khusus",
    DayType.SICK_LEAVE: "Izin Sakit (0 Menit)",
    DayType.NATIONAL_HOLIDAY: "Libur Nasional (0 Menit)",
}


def parse_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()


def weekday_index(value):
    """0 = Sunday ... 6 = Saturday."""
    return (parse_date(value).weekday() + 1) % 7


def day_name(value):
    return DAY_NAMES[weekday_index(value)]


def classify(value):
    weekday = weekday_index(value)
    if weekday == 0:
        return Schedule.HOLIDAY
    if weekday == 6:
        return Schedule.SHORT_HOURS
    if weekday in (1, 2, 4):
        return Schedule.WITH_ASSEMBLY
    return Schedule.PREPARATION


def template_id_for(value):
    return SCHEDULE_TEMPLATES[classify(value)]


# ==================================================
# Sesi input harian
# ==================================================


@dataclass
class DaySession:
    """The day being edited: date cursor, day type and patient counts."""

    date: date
    day_type: DayType = DayType.NORMAL
    note: Optional[str] = None
    patients_general: int = 0
    patients_referral: int = 0
    patients_specialist: int = 0

    def __post_init__(self):
        self.date = parse_date(self.date)

    @property
    def iso_date(self):
        return self.date.isoformat()

    @property
    def is_sunday(self):
        return weekday_index(self.date) == 0

    def activate(self, day_type, note=None):
        """Switch to ``day_type``; any other special type is cleared."""
        self.day_type = day_type
        self.note = note if day_type is not DayType.NORMAL else None

    def deactivate(self):
        self.activate(DayType.NORMAL)

    def set_patients(self, general=0, referral=0, specialist=0):
        self.patients_general = max(0, int(general or 0))
        self.patients_referral = max(0, int(referral or 0))
        self.patients_specialist = max(0, int(specialist or 0))

    def shift(self, days):
        self.date = self.date + timedelta(days=days)
        self.reset()

    def reset(self):
        self.deactivate()
        self.set_patients()

    def load(self, record):
        """Restore the state of a saved record, or reset when there is none."""
        if record is None:
            self.reset()
            return
        self.set_patients(
            record.patients_general,
            record.patients_referral,
            record.patients_specialist,
        )
        self.activate(record.day_type, record.note)

    def label(self):
        if self.day_type is not DayType.NORMAL:
            return DAY_TYPE_LABELS[self.day_type]
        return SCHEDULE_LABELS[classify(self.date)]


# ==================================================
# Penyusunan data harian
# ==================================================


def build_activity_text(entry, general, referral, specialist):
    if entry.code == CODE_GENERAL_CLINIC:
        return f"Pelayanan poli umum : {general} pasien rujukan : {referral} pasien"
    if entry.code == CODE_SPECIALIST_CLINIC:
        return f"Pemeriksaan poli khusus : {specialist} pasien"
    return entry.description


def _special_entry(description, code, start=NO_TIME, end=NO_TIME, volume=NO_TIME, minutes=0):
    return ActivityEntry(
        start=start,
        end=end,
        description=description,
        code=code,
        volume=volume,
        minutes=minutes,
    )


def build(session, catalog):
    """Produce the full DailyRecord for the session's date."""
    iso = session.iso_date
    general = session.patients_general
    referral = session.patients_referral
    specialist = session.patients_specialist
    remark = REMARK_DUTY

    if session.day_type is DayType.SICK_LEAVE:
        note = session.note or "Izin Sakit"
        activities = [_special_entry(f"Izin Sakit: {note}", CODE_SICK_LEAVE)]
        general = referral = specialist = 0
        remark = REMARK_SICK_LEAVE
    elif session.day_type is DayType.NATIONAL_HOLIDAY:
        note = session.note or "Libur Nasional"
        activities = [_special_entry(f"Libur Nasional: {note}", CODE_NATIONAL_HOLIDAY)]
        general = referral = specialist = 0
        remark = REMARK_NATIONAL_HOLIDAY
    elif session.day_type is DayType.MEETING:
        activities = [
            _special_entry(
                session.note or "Rapat",
                CODE_MEETING,
                start=MEETING_START,
                end=MEETING_END,
                volume=DEFAULT_VOLUME,
                minutes=calculate_minutes(MEETING_START, MEETING_END),
            )
        ]
    else:
        if session.is_sunday:
            raise SundayNotAllowed(iso)
        template_id = template_id_for(session.date)
        template = catalog.get_by_id(template_id)
        if template is None:
            raise TemplateNotFound(template_id)
        activities = [
            ActivityEntry(
                start=entry.start,
                end=entry.end,
                description=build_activity_text(entry, general, referral, specialist),
                code=entry.code,
                volume=DEFAULT_VOLUME,
                minutes=calculate_minutes(entry.start, entry.end),
            )
            for entry in template.activities
        ]

    return DailyRecord(
        date=iso,
        day_name=day_name(session.date),
        activities=activities,
        total_minutes=sum(a.minutes for a in activities),
        patients_general=general,
        patients_referral=referral,
        patients_specialist=specialist,
        day_type=session.day_type,
        note=session.note,
        remark=remark,
    )


def save_day(session, catalog, storage):
    record = build(session, catalog)
    if not storage.set(record.date, record):
        raise StorageError(f"Gagal menyimpan data {record.date}")
    return record


def delete_day(session, storage):
    if not storage.delete(session.iso_date):
        raise StorageError(f"Gagal menghapus data {session.iso_date}")
    session.reset()

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from lak.constants import DEFAULT_VOLUME, NO_TIME, REMARK_DUTY
from lak.errors import InvalidTimeRange

TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def to_minutes(value):
    """Convert "HH:MM" to minutes since midnight."""
    match = TIME_PATTERN.match(str(value).strip())
    if not match:
        raise InvalidTimeRange(f"Format jam tidak valid: {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeRange(f"Format jam tidak valid: {value!r}")
    return hours * 60 + minutes


def format_minutes(total):
    hours, minutes = divmod(int(total), 60)
    return f"{hours:02d}:{minutes:02d}"


def calculate_minutes(start, end):
    """Duration between two "HH:MM" times of the same day.

    Ranges that cross midnight are rejected instead of wrapped.
    """
    duration = to_minutes(end) - to_minutes(start)
    if duration < 0:
        raise InvalidTimeRange(f"Jam selesai {end} lebih awal dari jam mulai {start}")
    return duration


class DayType(Enum):
    NORMAL = "normal"
    MEETING = "meeting"
    SICK_LEAVE = "sick-leave"
    NATIONAL_HOLIDAY = "national-holiday"


@dataclass
class ActivityEntry:
    start: str
    end: str
    description: str
    code: str = ""
    volume: str = DEFAULT_VOLUME
    minutes: int = 0

    @property
    def has_times(self):
        return self.start not in ("", NO_TIME) and self.end not in ("", NO_TIME)

    def to_dict(self, with_minutes=True):
        data = {
            "jamMulai": self.start,
            "jamSelesai": self.end,
            "kegiatan": self.description,
            "kode": self.code,
        }
        if with_minutes:
            data["volume"] = self.volume
            data["menit"] = self.minutes
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(
            start=str(data.get("jamMulai") or ""),
            end=str(data.get("jamSelesai") or ""),
            description=str(data.get("kegiatan") or ""),
            code=str(data.get("kode") or ""),
            volume=str(data.get("volume") or DEFAULT_VOLUME),
            minutes=int(data.get("menit") or 0),
        )


@dataclass
class DailyRecord:
    date: str
    day_name: str
    activities: List[ActivityEntry] = field(default_factory=list)
    total_minutes: int = 0
    patients_general: int = 0
    patients_referral: int = 0
    patients_specialist: int = 0
    day_type: DayType = DayType.NORMAL
    note: Optional[str] = None
    remark: str = REMARK_DUTY

    @property
    def total_patients(self):
        return self.patients_general + self.patients_referral + self.patients_specialist

    @property
    def is_leave(self):
        return self.day_type in (DayType.SICK_LEAVE, DayType.NATIONAL_HOLIDAY)

    def to_dict(self):
        is_meeting = self.day_type is DayType.MEETING
        is_sick = self.day_type is DayType.SICK_LEAVE
        is_holiday = self.day_type is DayType.NATIONAL_HOLIDAY
        return {
            "tanggal": self.date,
            "hari": self.day_name,
            "activities": [a.to_dict() for a in self.activities],
            "totalMenit": self.total_minutes,
            "pasienUmum": self.patients_general,
            "pasienRujukan": self.patients_referral,
            "pasienKhusus": self.patients_specialist,
            "keterangan": self.remark,
            "isMeetingDay": is_meeting,
            "meetingName": self.note if is_meeting else None,
            "isSickLeave": is_sick,
            "sickLeaveNote": self.note if is_sick else None,
            "isNationalHoliday": is_holiday,
            "holidayName": self.note if is_holiday else None,
        }

    @classmethod
    def from_dict(cls, data, date=None):
        if data.get("isMeetingDay"):
            day_type, note = DayType.MEETING, data.get("meetingName")
        elif data.get("isSickLeave"):
            day_type, note = DayType.SICK_LEAVE, data.get("sickLeaveNote")
        elif data.get("isNationalHoliday"):
            day_type, note = DayType.NATIONAL_HOLIDAY, data.get("holidayName")
        else:
            day_type, note = DayType.NORMAL, None

        activities = [ActivityEntry.from_dict(a) for a in data.get("activities") or []]
        return cls(
            date=str(data.get("tanggal") or date or ""),
            day_name=str(data.get("hari") or ""),
            activities=activities,
            total_minutes=int(data.get("totalMenit") or 0),
            patients_general=int(data.get("pasienUmum") or 0),
            patients_referral=int(data.get("pasienRujukan") or 0),
            patients_specialist=int(data.get("pasienKhusus") or 0),
            day_type=day_type,
            note=note,
            remark=str(data.get("keterangan") or REMARK_DUTY),
        )


@dataclass
class Template:
    id: str
    name: str
    description: str = ""
    activities: List[ActivityEntry] = field(default_factory=list)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "activities": [a.to_dict(with_minutes=False) for a in self.activities],
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            activities=[ActivityEntry.from_dict(a) for a in data.get("activities") or []],
        )


@dataclass
class Profile:
    name: str = ""
    nip: str = ""
    rank: str = ""
    unit: str = ""

    def to_dict(self):
        return {"nama": self.name, "nip": self.nip, "pangkat": self.rank, "unit": self.unit}

    @classmethod
    def from_dict(cls, data):
        return cls(
            name=str(data.get("nama") or ""),
            nip=str(data.get("nip") or ""),
            rank=str(data.get("pangkat") or ""),
            unit=str(data.get("unit") or ""),
        )


@dataclass
class MonthStats:
    year: int
    month: int
    total_days: int = 0
    total_minutes: int = 0
    total_activities: int = 0
    patients_general: int = 0
    patients_referral: int = 0
    patients_specialist: int = 0
    sick_leave_days: int = 0
    holiday_days: int = 0

    @property
    def total_patients(self):
        return self.patients_general + self.patients_referral + self.patients_specialist

    @property
    def leave_days(self):
        return self.sick_leave_days + self.holiday_days

    @property
    def effective_days(self):
        return self.total_days - self.leave_days

import pytest

from lak.errors import InvalidTimeRange
from lak.models import (
    ActivityEntry,
    DailyRecord,
    DayType,
    Profile,
    calculate_minutes,
    format_minutes,
    to_minutes,
)


def test_to_minutes_and_format():
    assert to_minutes("07:30") == 450
    assert to_minutes("7:05") == 425
    assert format_minutes(450) == "07:30"


@pytest.mark.parametrize("value", ["", "-", "25:00", "07:60", "abc"])
def test_to_minutes_rejects_bad_values(value):
    with pytest.raises(InvalidTimeRange):
        to_minutes(value)


def test_calculate_minutes():
    assert calculate_minutes("07:30", "08:00") == 30
    assert calculate_minutes("08:00", "12:30") == 270
    assert calculate_minutes("10:00", "10:00") == 0


def test_calculate_minutes_rejects_crossing_midnight():
    with pytest.raises(InvalidTimeRange):
        calculate_minutes("22:00", "01:00")


def test_daily_record_dict_uses_backup_keys():
    record = DailyRecord(
        date="2025-06-03",
        day_name="Selasa",
        activities=[ActivityEntry("07:30", "15:00", "Rapat koordinasi", "Rapat", minutes=450)],
        total_minutes=450,
        patients_general=3,
        day_type=DayType.MEETING,
        note="Rapat koordinasi",
    )
    data = record.to_dict()

    assert data["tanggal"] == "2025-06-03"
    assert data["totalMenit"] == 450
    assert data["isMeetingDay"] is True
    assert data["isSickLeave"] is False
    assert data["meetingName"] == "Rapat koordinasi"
    assert data["sickLeaveNote"] is None
    assert data["activities"][0]["jamMulai"] == "07:30"
    assert DailyRecord.from_dict(data) == record


def test_daily_record_with_several_flags_prefers_meeting():
    record = DailyRecord.from_dict({
        "tanggal": "2025-06-03",
        "isMeetingDay": True,
        "meetingName": "Rapat",
        "isSickLeave": True,
        "sickLeaveNote": "Demam",
    })
    assert record.day_type is DayType.MEETING
    assert record.note == "Rapat"


def test_daily_record_properties():
    record = DailyRecord(
        date="2025-06-03", day_name="Selasa",
        patients_general=2, patients_referral=1, patients_specialist=4,
        day_type=DayType.NATIONAL_HOLIDAY,
    )
    assert record.total_patients == 7
    assert record.is_leave


def test_profile_round_trip():
    profile = Profile(name="Tresna", nip="1997", rank="II/c / Perawat", unit="Puskesmas")
    assert profile.to_dict() == {"nama": "Tresna", "nip": "1997", "pangkat": "II/c / Perawat", "unit": "Puskesmas"}
    assert Profile.from_dict(profile.to_dict()) == profile

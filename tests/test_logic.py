from datetime import date, timedelta

import pytest

from lak.errors import StorageError, SundayNotAllowed, TemplateNotFound
from lak.logic import (
    DaySession,
    Schedule,
    build,
    classify,
    day_name,
    delete_day,
    save_day,
    template_id_for,
)
from lak.models import DayType
from lak.storage import Storage

# 2025-06-01 is a Sunday
WEEK = [date(2025, 6, 1) + timedelta(days=i) for i in range(7)]


def test_classify_covers_every_weekday():
    assert [classify(d) for d in WEEK] == [
        Schedule.HOLIDAY,
        Schedule.WITH_ASSEMBLY,
        Schedule.WITH_ASSEMBLY,
        Schedule.PREPARATION,
        Schedule.WITH_ASSEMBLY,
        Schedule.PREPARATION,
        Schedule.SHORT_HOURS,
    ]


def test_classify_depends_only_on_weekday():
    for d in WEEK:
        for weeks in (1, 5, 52, 300):
            assert classify(d + timedelta(weeks=weeks)) is classify(d)


def test_template_ids():
    assert template_id_for("2025-06-01") is None
    assert template_id_for("2025-06-02") == "weekday-apel"
    assert template_id_for("2025-06-04") == "weekday-prep"
    assert template_id_for("2025-06-07") == "saturday"


def test_day_name():
    assert day_name("2025-06-02") == "Senin"
    assert day_name(date(2025, 6, 1)) == "Minggu"


def test_build_monday_uses_assembly_template(catalog, monday):
    session = DaySession(monday)
    assert classify(monday) is Schedule.WITH_ASSEMBLY

    record = build(session, catalog)

    assert record.date == "2025-06-02"
    assert record.day_name == "Senin"
    assert [a.minutes for a in record.activities] == [30, 270, 90, 60]
    assert record.total_minutes == 450
    assert record.day_type is DayType.NORMAL
    assert record.remark == "TJ"


def test_build_saturday_is_short_hours(catalog):
    record = build(DaySession("2025-06-07"), catalog)
    assert classify("2025-06-07") is Schedule.SHORT_HOURS
    assert [a.minutes for a in record.activities] == [15, 135, 60, 30]
    assert record.total_minutes == 240


def test_build_interpolates_patient_counts(catalog, monday):
    session = DaySession(monday)
    session.set_patients(12, 3, 5)

    record = build(session, catalog)
    texts = [a.description for a in record.activities]

    assert texts[0] == "Apel pagi"
    assert texts[1] == "Pelayanan poli umum : 12 pasien rujukan : 3 pasien"
    assert texts[2] == "Pemeriksaan poli khusus : 5 pasien"
    assert texts[3] == "Pencatatan dan pelaporan hasil Kegiatan"
    assert (record.patients_general, record.patients_referral, record.patients_specialist) == (12, 3, 5)


def test_build_sunday_without_override_fails(catalog):
    with pytest.raises(SundayNotAllowed):
        build(DaySession("2025-06-01"), catalog)


@pytest.mark.parametrize("day_type", [DayType.MEETING, DayType.SICK_LEAVE, DayType.NATIONAL_HOLIDAY])
@pytest.mark.parametrize("day", WEEK)
def test_overrides_build_on_any_day(catalog, day, day_type):
    session = DaySession(day)
    session.activate(day_type)
    record = build(session, catalog)
    assert len(record.activities) == 1
    assert record.day_type is day_type


def test_meeting_day_shape(catalog, monday):
    session = DaySession(monday)
    session.set_patients(4, 0, 0)
    session.activate(DayType.MEETING, "Rapat Lokakarya Mini")

    record = build(session, catalog)
    entry = record.activities[0]

    assert (entry.start, entry.end, entry.minutes) == ("07:30", "15:00", 450)
    assert entry.code == "Rapat"
    assert entry.description == "Rapat Lokakarya Mini"
    assert record.total_minutes == 450
    assert record.note == "Rapat Lokakarya Mini"
    assert record.patients_general == 4


def test_sick_leave_forces_zero(catalog, monday):
    session = DaySession(monday)
    session.set_patients(10, 2, 3)
    session.activate(DayType.SICK_LEAVE, "Demam")

    record = build(session, catalog)

    assert len(record.activities) == 1
    assert record.activities[0].minutes == 0
    assert record.activities[0].description == "Izin Sakit: Demam"
    assert record.total_minutes == 0
    assert (record.patients_general, record.patients_referral, record.patients_specialist) == (0, 0, 0)
    assert record.remark == "IS"


def test_national_holiday(catalog):
    session = DaySession("2025-06-06")
    session.activate(DayType.NATIONAL_HOLIDAY, "Idul Adha")
    record = build(session, catalog)
    assert record.total_minutes == 0
    assert record.remark == "LN"
    assert record.activities[0].code == "Libur Nasional"
    assert record.to_dict()["holidayName"] == "Idul Adha"


@pytest.mark.parametrize("first", list(DayType))
@pytest.mark.parametrize("second", list(DayType))
def test_activating_one_type_clears_the_others(catalog, monday, first, second):
    session = DaySession(monday)
    session.activate(first, "catatan")
    session.activate(second, "lain")

    data = build(session, catalog).to_dict()
    flags = [data["isMeetingDay"], data["isSickLeave"], data["isNationalHoliday"]]

    assert session.day_type is second
    assert sum(flags) == (0 if second is DayType.NORMAL else 1)


def test_shift_resets_overrides():
    session = DaySession("2025-06-02")
    session.set_patients(1, 2, 3)
    session.activate(DayType.SICK_LEAVE, "Demam")
    session.shift(1)
    assert session.iso_date == "2025-06-03"
    assert session.day_type is DayType.NORMAL
    assert session.note is None
    assert session.patients_general == 0


def test_missing_template_is_reported(catalog, monday):
    catalog.delete("weekday-apel")
    with pytest.raises(TemplateNotFound):
        build(DaySession(monday), catalog)


def test_save_day_replaces_record(storage, catalog, monday):
    session = DaySession(monday)
    session.set_patients(5, 1, 2)
    save_day(session, catalog, storage)

    session.activate(DayType.SICK_LEAVE, "Flu")
    save_day(session, catalog, storage)

    stored = storage.get("2025-06-02")
    assert stored.day_type is DayType.SICK_LEAVE
    assert stored.total_minutes == 0
    assert len(stored.activities) == 1

    session.load(stored)
    assert session.day_type is DayType.SICK_LEAVE
    assert session.note == "Flu"


def test_save_day_reports_storage_failure(tmp_path, catalog, monday):
    blocker = tmp_path / "not-a-folder"
    blocker.write_text("x")
    with pytest.raises(StorageError):
        save_day(DaySession(monday), catalog, Storage(str(blocker)))


def test_delete_day(storage, catalog, monday):
    session = DaySession(monday)
    save_day(session, catalog, storage)
    delete_day(session, storage)
    assert storage.get("2025-06-02") is None

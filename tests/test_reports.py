from lak.logic import DaySession, build, save_day
from lak.models import DayType
from lak.reports import (
    attendance_percentage,
    month_overview,
    month_stats,
    recent_activities,
    records_to_dataframe,
    stats_for_month,
)


def save(storage, catalog, iso, day_type=DayType.NORMAL, note=None, general=0, referral=0, specialist=0):
    session = DaySession(iso)
    session.activate(day_type, note)
    session.set_patients(general, referral, specialist)
    return save_day(session, catalog, storage)


def test_attendance_percentage():
    assert attendance_percentage(0, 0) == 100.0
    assert attendance_percentage(20, 0) == 100.0
    assert attendance_percentage(20, 2) == 90.0
    assert attendance_percentage(3, 1) == 66.7


def test_month_stats_sums_records(storage, catalog):
    save(storage, catalog, "2025-06-02", general=10, referral=2, specialist=1)
    save(storage, catalog, "2025-06-03", DayType.SICK_LEAVE, "demam")
    save(storage, catalog, "2025-06-07", general=4)
    save(storage, catalog, "2025-07-01", general=50)

    stats = stats_for_month(storage, 2025, 6)

    assert stats.total_days == 3
    assert stats.total_minutes == 450 + 0 + 240
    assert stats.total_activities == 4 + 1 + 4
    assert (stats.patients_general, stats.patients_referral, stats.patients_specialist) == (14, 2, 1)
    assert stats.total_patients == 17
    assert stats.sick_leave_days == 1
    assert stats.holiday_days == 0
    assert stats.effective_days == 2


def test_empty_month():
    stats = month_stats({}, 2025, 2)
    assert stats.total_days == 0
    assert stats.total_minutes == 0
    overview = month_overview(stats)
    assert overview.avg_minutes_per_day == 0
    assert overview.working_days_progress == 0.0


def test_month_overview_caps_progress(catalog):
    records = {}
    for day in range(2, 28):
        session = DaySession(f"2025-06-{day:02d}")
        if session.is_sunday:
            continue
        records[session.iso_date] = build(session, catalog)
    stats = month_stats(records, 2025, 6)
    assert stats.total_days > 22
    assert month_overview(stats).working_days_progress == 100.0


def test_records_to_dataframe(storage, catalog):
    save(storage, catalog, "2025-06-03", general=3)
    save(storage, catalog, "2025-06-02", DayType.NATIONAL_HOLIDAY, "Idul Adha")

    df = records_to_dataframe(storage.list_in_range(2025, 6))

    assert list(df["Tanggal"]) == ["2025-06-02", "2025-06-03"]
    assert list(df["Ket"]) == ["LN", "TJ"]
    assert df["Menit"].sum() == 450
    assert df["Total Pasien"].sum() == 3


def test_recent_activities(storage, catalog):
    for day in (2, 3, 4, 5, 6, 7):
        save(storage, catalog, f"2025-06-{day:02d}", general=day)

    recent = recent_activities(storage)

    assert [r["date"] for r in recent] == [
        "2025-06-07", "2025-06-06", "2025-06-05", "2025-06-04", "2025-06-03",
    ]
    assert recent[0] == {
        "date": "2025-06-07",
        "hari": "Sabtu",
        "activityCount": 4,
        "totalPatients": 7,
        "totalMenit": 240,
    }

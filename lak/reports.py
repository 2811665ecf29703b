from dataclasses import dataclass

import pandas as pd

from lak.constants import TARGET_WORKING_DAYS
from lak.models import DayType, MonthStats


def attendance_percentage(total_days, leave_days):
    """Share of effective days, 100.0 when there is nothing to discount."""
    if leave_days <= 0 or total_days <= 0:
        return 100.0
    return round((total_days - leave_days) / total_days * 100, 1)


def month_stats(records, year, month):
    stats = MonthStats(year=year, month=month)
    for record in records.values():
        stats.total_days += 1
        stats.total_minutes += record.total_minutes
        stats.total_activities += len(record.activities)
        stats.patients_general += record.patients_general
        stats.patients_referral += record.patients_referral
        stats.patients_specialist += record.patients_specialist
        if record.day_type is DayType.SICK_LEAVE:
            stats.sick_leave_days += 1
        elif record.day_type is DayType.NATIONAL_HOLIDAY:
            stats.holiday_days += 1
    return stats


def stats_for_month(storage, year, month):
    return month_stats(storage.list_in_range(year, month), year, month)


def month_attendance(stats):
    return attendance_percentage(stats.total_days, stats.leave_days)


@dataclass
class MonthOverview:
    avg_minutes_per_day: int
    avg_patients_per_day: int
    working_days_progress: float


def month_overview(stats):
    if stats.total_days == 0:
        return MonthOverview(0, 0, 0.0)
    return MonthOverview(
        avg_minutes_per_day=round(stats.total_minutes / stats.total_days),
        avg_patients_per_day=round(stats.total_patients / stats.total_days),
        working_days_progress=min(100.0, stats.total_days / TARGET_WORKING_DAYS * 100),
    )


def records_to_dataframe(records):
    rows = []
    for date, record in sorted(records.items()):
        rows.append({
            "Tanggal": date,
            "Hari": record.day_name,
            "Kegiatan": len(record.activities),
            "Menit": record.total_minutes,
            "Umum": record.patients_general,
            "Rujukan": record.patients_referral,
            "Khusus": record.patients_specialist,
            "Total Pasien": record.total_patients,
            "Ket": record.remark,
        })
    columns = ["Tanggal", "Hari", "Kegiatan", "Menit", "Umum", "Rujukan",
               "Khusus", "Total Pasien", "Ket"]
    return pd.DataFrame(rows, columns=columns)


def recent_activities(storage, limit=5):
    records = storage.all_records()
    latest = sorted(records, reverse=True)[:limit]
    return [
        {
            "date": date,
            "hari": records[date].day_name,
            "activityCount": len(records[date].activities),
            "totalPatients": records[date].total_patients,
            "totalMenit": records[date].total_minutes,
        }
        for date in latest
    ]

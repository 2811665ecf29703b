"""Read LAK workbooks back into daily records.

The expected layout is the one written by ``lak.export``: profile labels in
column B of rows 3-9, a header row starting with ``NO`` within the first 16
rows, then one block of activity rows per day.
"""
import io
import logging
import math
import re
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from lak.constants import (
    CODE_MEETING,
    CODE_SICK_LEAVE,
    CODE_NATIONAL_HOLIDAY,
    DEFAULT_VOLUME,
    REMARK_DUTY,
    REMARK_SICK_LEAVE,
    REMARK_NATIONAL_HOLIDAY
)
from lak.errors import MalformedHeader, NoRecognizableSheet, StorageError
from lak.logic import day_name
from lak.models import ActivityEntry, DailyRecord, DayType, Profile

logger = logging.getLogger(__name__)

SHEET_MARKERS = ("lak", "laporan aktivitas")
PROFILE_ROWS = range(2, 9)
HEADER_SCAN_ROWS = 16
TOTAL_MARKER = "Total Aktivitas"
EXCEL_EPOCH_OFFSET = 25569
UNIX_EPOCH = date(1970, 1, 1)

COL_NO = 0
COL_DAY = 1
COL_DATE = 2
COL_START = 3
COL_END = 4
COL_DESCRIPTION = 5
COL_VOLUME = 6
COL_MINUTES = 7
COL_REMARK = 8
COL_CODE = 10
COL_GENERAL = 11
COL_REFERRAL = 12
COL_SPECIALIST = 13
ROW_WIDTH = 14

TIME_IN_TEXT = re.compile(r"(\d{1,2}):(\d{2})")


@dataclass
class ImportResult:
    profile: Profile = field(default_factory=Profile)
    records: Dict[str, DailyRecord] = field(default_factory=dict)

    @property
    def activity_count(self):
        return sum(len(r.activities) for r in self.records.values())


def is_number(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def to_int(value):
    if is_number(value):
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def to_minutes_cell(value):
    """Minutes from a number or numeric text cell; anything else counts as 0."""
    if is_number(value):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", "."))
        except ValueError:
            return 0
    else:
        return 0
    return int(number) if math.isfinite(number) else 0


def serial_to_date(serial):
    days = math.floor(serial - EXCEL_EPOCH_OFFSET)
    return UNIX_EPOCH + timedelta(days=days)


def parse_date_cell(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if is_number(value):
        return serial_to_date(value)
    return None


def parse_time(value):
    """Normalize a time cell to "HH:MM", or "" when it is not a time."""
    if is_blank(value):
        return ""
    if is_number(value):
        total = round((value % 1) * 1440) % 1440
        hours, minutes = divmod(total, 60)
        return f"{hours:02d}:{minutes:02d}"
    if isinstance(value, (datetime, time)):
        return f"{value.hour:02d}:{value.minute:02d}"
    match = TIME_IN_TEXT.search(str(value))
    if match:
        return f"{int(match.group(1)):02d}:{match.group(2)}"
    return ""


def find_lak_sheet(workbook):
    for name in workbook.sheetnames:
        lowered = name.lower()
        if any(marker in lowered for marker in SHEET_MARKERS):
            return workbook[name]
    if not workbook.sheetnames:
        raise NoRecognizableSheet("Tidak ditemukan sheet LAK yang valid")
    return workbook[workbook.sheetnames[0]]


def sheet_rows(sheet):
    rows = []
    for row in sheet.iter_rows(values_only=True):
        values = list(row)
        if len(values) < ROW_WIDTH:
            values.extend([None] * (ROW_WIDTH - len(values)))
        rows.append(values)
    return rows


def parse_profile(rows):
    profile = Profile()
    for r in PROFILE_ROWS:
        if r >= len(rows):
            break
        label_cell, value_cell = rows[r][1], rows[r][2]
        if is_blank(label_cell):
            continue
        label = str(label_cell).strip().lower()
        value = "" if value_cell is None else re.sub(r"^:\s*", "", str(value_cell)).strip()

        if "nama" in label:
            profile.name = value
        elif "nip" in label:
            profile.nip = value
        elif "pangkat" in label:
            profile.rank = value
        elif "unit" in label:
            profile.unit = value
    return profile


def find_header_row(rows):
    for r, row in enumerate(rows[:HEADER_SCAN_ROWS]):
        cell = row[COL_NO]
        if cell is not None and str(cell).strip().upper().rstrip(".") == "NO":
            return r
    raise MalformedHeader("Baris judul tabel (NO) tidak ditemukan")


def _infer_day_type(record):
    remark = record.remark.strip().upper()
    if remark == REMARK_SICK_LEAVE:
        return DayType.SICK_LEAVE
    if remark == REMARK_NATIONAL_HOLIDAY:
        return DayType.NATIONAL_HOLIDAY
    if len(record.activities) == 1 and record.activities[0].code == CODE_MEETING:
        return DayType.MEETING
    return DayType.NORMAL


# text written when the day was saved without a name or note
DEFAULT_NOTES = {
    DayType.MEETING: CODE_MEETING,
    DayType.SICK_LEAVE: CODE_SICK_LEAVE,
    DayType.NATIONAL_HOLIDAY: CODE_NATIONAL_HOLIDAY,
}


def _note_from(record):
    if record.day_type is DayType.NORMAL or not record.activities:
        return None
    description = record.activities[0].description.strip()
    if record.day_type is DayType.MEETING:
        note = description
    else:
        _, _, note = description.partition(":")
        note = note.strip()
    if not note or note == DEFAULT_NOTES[record.day_type]:
        return None
    return note


def parse_rows(rows):
    header = find_header_row(rows)
    records = {}
    current = None

    for row in rows[header + 1:]:
        if is_blank(row[COL_NO]) and is_blank(row[COL_START]):
            continue
        if TOTAL_MARKER.lower() in str(row[COL_DATE] or "").lower():
            continue

        day_index = to_int(row[COL_NO])
        if day_index is not None:
            parsed = parse_date_cell(row[COL_DATE])
            if parsed is None:
                logger.warning("Tanggal tidak dikenali pada hari ke-%s: %r", day_index, row[COL_DATE])
                current = None
                continue
            iso = parsed.isoformat()
            current = DailyRecord(
                date=iso,
                day_name=str(row[COL_DAY]).strip() if not is_blank(row[COL_DAY]) else day_name(parsed),
                remark=str(row[COL_REMARK]).strip() if not is_blank(row[COL_REMARK]) else REMARK_DUTY,
            )
            records[iso] = current

        if current is None or is_blank(row[COL_START]) or is_blank(row[COL_END]):
            continue

        minutes = row[COL_MINUTES]
        entry = ActivityEntry(
            start=parse_time(row[COL_START]),
            end=parse_time(row[COL_END]),
            description="" if row[COL_DESCRIPTION] is None else str(row[COL_DESCRIPTION]),
            code="" if row[COL_CODE] is None else str(row[COL_CODE]),
            volume=DEFAULT_VOLUME if is_blank(row[COL_VOLUME]) else str(row[COL_VOLUME]),
            minutes=to_minutes_cell(minutes),
        )
        current.activities.append(entry)
        current.total_minutes += entry.minutes

        general = to_int(row[COL_GENERAL])
        referral = to_int(row[COL_REFERRAL])
        specialist = to_int(row[COL_SPECIALIST])
        if general is not None:
            current.patients_general = general
        if referral is not None:
            current.patients_referral = referral
        if specialist is not None:
            current.patients_specialist = specialist

    for record in records.values():
        record.day_type = _infer_day_type(record)
        record.note = _note_from(record)
    return records


def parse(source):
    """Parse a LAK workbook given as bytes, a path or a binary file object."""
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    try:
        workbook = load_workbook(source, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        raise NoRecognizableSheet(f"Gagal membaca file Excel: {e}") from e

    sheet = find_lak_sheet(workbook)
    rows = sheet_rows(sheet)
    result = ImportResult(profile=parse_profile(rows), records=parse_rows(rows))
    logger.info("Import %s: %d hari, %d aktivitas", sheet.title, len(result.records), result.activity_count)
    return result


def merge_into(storage, result, import_profile=True):
    """Write parsed records over the stored ones; returns the saved day count."""
    if import_profile and result.profile.name:
        storage.save_profile(result.profile)
    if not storage.merge_records(result.records):
        raise StorageError("Gagal menyimpan data hasil import")
    return len(result.records)

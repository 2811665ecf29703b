import io
from datetime import date, time

import pytest
from openpyxl import Workbook

from lak import importer
from lak.errors import MalformedHeader, NoRecognizableSheet
from lak.models import DayType


HEADER = ["NO", "HARI", "TANGGAL", "JAM MULAI", "JAM SELESAI", "URAIAN KEGIATAN", "VOLUME",
          "JML MENIT", "KET", "PARAF", "KODE", "PASIEN UMUM", "RUJUKAN", "KHUSUS"]


def workbook_bytes(rows, title="LAK Jun-25", extra_sheets=()):
    wb = Workbook()
    for name in extra_sheets:
        wb.create_sheet(name, 0)
    ws = wb.worksheets[-1]
    ws.title = title
    for row in rows:
        ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def lak_rows(body):
    return [
        ["REKAPITULASI"],
        ["LAPORAN AKTIVITAS KERJA"],
        ["DATA PEGAWAI"],
        ["1", "Nama", ": Tresna"],
        ["2", "NIP", ": 199701012020"],
        ["3", "Pangkat/ Gol", ": Penata Muda"],
        ["4", "Unit Kerja", ": Puskesmas Cibeureum"],
        [],
        ["KEGIATAN BULAN : Juni 2025"],
        [],
        HEADER,
    ] + body


def test_parse_reads_profile_and_days():
    data = workbook_bytes(lak_rows([
        [1, "Senin", 45810, "07:30", "08:00", "Apel pagi", "1 kegiatan", 30, "TJ", None, "Apel Pagi", 12, 3, 1],
        [None, None, None, "08:00", "12:30", "Pelayanan poli umum", "1 kegiatan", 270, "TJ", None, "Poli Umum"],
        [None, None, "Total Aktivitas Harian (menit)", None, None, None, None, 300],
        [2, "Sabtu", 45808, 0.3125, 0.34375, "Apel", "1 kegiatan", 45, "TJ", None, "Apel Pagi", "5"],
    ]))

    result = importer.parse(data)

    assert result.profile.name == "Tresna"
    assert result.profile.nip == "199701012020"
    assert result.profile.rank == "Penata Muda"
    assert result.profile.unit == "Puskesmas Cibeureum"
    assert sorted(result.records) == ["2025-05-31", "2025-06-02"]

    monday = result.records["2025-06-02"]
    assert [a.minutes for a in monday.activities] == [30, 270]
    assert monday.total_minutes == 300
    assert (monday.patients_general, monday.patients_referral, monday.patients_specialist) == (12, 3, 1)
    assert monday.day_type is DayType.NORMAL

    saturday = result.records["2025-05-31"]
    assert saturday.activities[0].start == "07:30"
    assert saturday.activities[0].end == "08:15"
    assert saturday.patients_general == 5
    assert result.activity_count == 3


def test_serial_dates_use_unix_offset():
    assert importer.serial_to_date(45810) == date(2025, 6, 2)
    assert importer.serial_to_date(45808) == date(2025, 5, 31)
    assert importer.serial_to_date(45810.75) == date(2025, 6, 2)


@pytest.mark.parametrize("value, expected", [
    (0.3125, "07:30"),
    (45810.5, "12:00"),
    (time(14, 5), "14:05"),
    ("7:30", "07:30"),
    ("Jam 13:15 WIB", "13:15"),
    ("-", ""),
    (None, ""),
])
def test_parse_time(value, expected):
    assert importer.parse_time(value) == expected


def test_later_patient_cells_overwrite():
    data = workbook_bytes(lak_rows([
        [1, "Senin", 45810, "07:30", "08:00", "Apel", "1 kegiatan", 30, "TJ", None, "Apel Pagi", 2],
        [None, None, None, "08:00", "09:00", "Poli", "1 kegiatan", 60, "TJ", None, "Poli Umum", 9],
    ]))
    record = importer.parse(data).records["2025-06-02"]
    assert record.patients_general == 9


def test_unreadable_date_skips_the_day():
    data = workbook_bytes(lak_rows([
        [1, "Senin", "bukan tanggal", "07:30", "08:00", "Apel", "1 kegiatan", 30],
        [None, None, None, "08:00", "09:00", "Poli", "1 kegiatan", 60],
        [2, "Selasa", 45811, "07:30", "08:00", "Apel", "1 kegiatan", 30],
    ]))
    records = importer.parse(data).records
    assert list(records) == ["2025-06-03"]
    assert len(records["2025-06-03"].activities) == 1


def test_day_types_are_inferred():
    data = workbook_bytes(lak_rows([
        [1, "Senin", 45810, "-", "-", "Izin Sakit: demam", "-", 0, "IS", None, "Izin Sakit"],
        [2, "Selasa", 45811, "07:30", "15:00", "Rapat Koordinasi", "1 kegiatan", 450, "TJ", None, "Rapat"],
        [3, "Rabu", 45812, "-", "-", "Libur Nasional: Idul Adha", "-", 0, "LN", None, "Libur Nasional"],
    ]))
    records = importer.parse(data).records

    sick = records["2025-06-02"]
    assert sick.day_type is DayType.SICK_LEAVE
    assert sick.note == "demam"
    assert sick.activities[0].start == ""
    assert sick.total_minutes == 0

    meeting = records["2025-06-03"]
    assert meeting.day_type is DayType.MEETING
    assert meeting.note == "Rapat Koordinasi"

    holiday = records["2025-06-04"]
    assert holiday.day_type is DayType.NATIONAL_HOLIDAY
    assert holiday.note == "Idul Adha"


def test_prefers_sheet_named_lak():
    data = workbook_bytes(lak_rows([
        [1, "Senin", 45810, "07:30", "08:00", "Apel", "1 kegiatan", 30],
    ]), title="Laporan Aktivitas Juni", extra_sheets=["Catatan"])
    assert list(importer.parse(data).records) == ["2025-06-02"]


def test_missing_header_is_rejected():
    data = workbook_bytes([["Nama", "Tresna"], [1, "Senin", 45810, "07:30", "08:00"]])
    with pytest.raises(MalformedHeader):
        importer.parse(data)


def test_header_with_trailing_dot_is_found():
    rows = lak_rows([[1, "Senin", 45810, "07:30", "08:00", "Apel", "1 kegiatan", 30]])
    rows[10] = ["No."] + HEADER[1:]
    assert "2025-06-02" in importer.parse(workbook_bytes(rows)).records


def test_garbage_bytes_are_rejected():
    with pytest.raises(NoRecognizableSheet):
        importer.parse(b"this is not a workbook")


def test_merge_into_overwrites_and_keeps_other_days(storage):
    storage.initialize()
    first = importer.parse(workbook_bytes(lak_rows([
        [1, "Senin", 45810, "07:30", "08:00", "Apel", "1 kegiatan", 30],
        [2, "Selasa", 45811, "07:30", "08:00", "Apel", "1 kegiatan", 30],
    ])))
    assert importer.merge_into(storage, first) == 2
    assert storage.get_profile().name == "Tresna"

    second = importer.parse(workbook_bytes(lak_rows([
        [1, "Senin", 45810, "07:30", "09:00", "Apel panjang", "1 kegiatan", 90],
    ])))
    importer.merge_into(storage, second, import_profile=False)

    assert storage.get("2025-06-02").total_minutes == 90
    assert storage.get("2025-06-03").total_minutes == 30


def test_minutes_written_as_text_are_counted():
    data = workbook_bytes(lak_rows([
        [1, "Senin", 45810, "07:30", "08:00", "Apel", "1 kegiatan", "30", "TJ", None, "Apel Pagi"],
        [None, None, None, "08:00", "09:00", "Poli", "1 kegiatan", " 60 ", "TJ", None, "Poli Umum"],
        [None, None, None, "09:00", "09:10", "Catat", "1 kegiatan", "sepuluh", "TJ", None, "Lainnya"],
    ]))
    record = importer.parse(data).records["2025-06-02"]
    assert [a.minutes for a in record.activities] == [30, 60, 0]
    assert record.total_minutes == 90


@pytest.mark.parametrize("value, expected", [
    (30, 30),
    (45.0, 45),
    ("30", 30),
    ("12,5", 12),
    ("", 0),
    ("nan", 0),
    (None, 0),
    (True, 0),
])
def test_to_minutes_cell(value, expected):
    assert importer.to_minutes_cell(value) == expected


def test_time_fraction_near_midnight_wraps():
    assert importer.parse_time(0.99999) == "00:00"
    assert importer.parse_time(45810.999999) == "00:00"


def test_default_notes_import_as_empty():
    data = workbook_bytes(lak_rows([
        [1, "Senin", 45810, "07:30", "15:00", "Rapat", "1 kegiatan", 450, "TJ", None, "Rapat"],
        [2, "Selasa", 45811, "-", "-", "Izin Sakit: Izin Sakit", "-", 0, "IS", None, "Izin Sakit"],
    ]))
    records = importer.parse(data).records
    assert records["2025-06-02"].day_type is DayType.MEETING
    assert records["2025-06-02"].note is None
    assert records["2025-06-03"].day_type is DayType.SICK_LEAVE
    assert records["2025-06-03"].note is None

import logging
import os
from datetime import date

import pandas as pd
from openpyxl.styles import PatternFill, Alignment, Font, Border, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.page import PageMargins

from lak.constants import (
    MONTH_NAMES,
    REPORTS_FOLDER,
    REMARK_DUTY,
    DEFAULT_SUPERVISOR_TITLE,
    DEFAULT_SUPERVISOR_NAME,
    DEFAULT_SUPERVISOR_NIP
)
from lak.errors import EmptyReport
from lak.reports import month_attendance, month_stats

logger = logging.getLogger(__name__)

COLUMNS = [
    "NO", "HARI", "TANGGAL", "JAM MULAI", "JAM SELESAI",
    "URAIAN KEGIATAN", "VOLUME", "JML MENIT", "KET", "PARAF",
    "KODE", "PASIEN UMUM", "RUJUKAN", "KHUSUS"
]
COLUMN_WIDTHS = [5, 10, 12, 10, 10, 50, 12, 10, 6, 10, 14, 10, 10, 10]
LAST_COLUMN = len(COLUMNS)

# 0-based row of the table header; the importer looks for "NO" here
TABLE_HEADER_ROW = 10
DAILY_TOTAL_LABEL = "Total Aktivitas Harian (menit)"

INSTRUCTIONS = [
    "1. Kolom 1 : diisi dengan nomor urut hari efektif kerja",
    "2. Kolom 2-3 : diisi dengan hari dan tanggal kegiatan",
    "3. Kolom 4-5 : diisi dengan jam kegiatan (dari jam s/d jam {jj.mm - jj.mm})",
    "4. Kolom 6 : diisi dengan uraian kegiatan",
    "5. Kolom 7 : diisi dengan jumlah Volume kegiatan",
    "6. Kolom 8 : diisi dengan jumlah menit aktivitas",
    "7. Kolom 9 : diisi dengan TJ (tugas jabatan atau sesuai SKP), TT (tugas tambahan), "
    "IS (izin sakit), LN (libur nasional)",
    "8. Kolom 10 : diisi dengan paraf (validasi) atasan",
    "9. Kolom 11-14 : kode kegiatan dan jumlah pasien (umum, rujukan, khusus)",
]

header_fill = PatternFill("solid", start_color="00B0F0")
label_fill = PatternFill("solid", start_color="F0F0F0")
total_fill = PatternFill("solid", start_color="B4E5F7")

thin = Side(style="thin")
border = Border(left=thin, right=thin, top=thin, bottom=thin)
center = Alignment(horizontal="center", vertical="center", wrap_text=True)
left = Alignment(horizontal="left", vertical="center", wrap_text=True)


def report_file_name(year, month):
    return f"LAK_{MONTH_NAMES[month - 1]}_{year}.xlsx"


def report_sheet_name(year, month):
    return f"LAK {MONTH_NAMES[month - 1][:3]}-{str(year)[2:]}"


def format_long_date(record):
    d = date.fromisoformat(record.date)
    return f"{d.day:02d} {MONTH_NAMES[d.month - 1]} {d.year}"


def build_table_rows(records):
    """Rows of the activity table and the 1-based sheet rows of each day block."""
    rows = []
    blocks = []
    first_row = TABLE_HEADER_ROW + 2

    for day_number, iso in enumerate(sorted(records), start=1):
        record = records[iso]
        start = first_row + len(rows)
        for index, act in enumerate(record.activities):
            first = index == 0
            rows.append([
                day_number if first else "",
                record.day_name if first else "",
                date.fromisoformat(iso) if first else "",
                act.start,
                act.end,
                act.description,
                act.volume,
                act.minutes,
                record.remark or REMARK_DUTY,
                "",
                act.code,
                record.patients_general if first else "",
                record.patients_referral if first else "",
                record.patients_specialist if first else "",
            ])
        rows.append(["", "", DAILY_TOTAL_LABEL, "", "", "", "", record.total_minutes,
                     "", "", "", "", "", ""])
        blocks.append((start, first_row + len(rows) - 1))
    return rows, blocks


def _merge(ws, row, first_col, last_col):
    if last_col > first_col:
        ws.merge_cells(start_row=row, start_column=first_col, end_row=row, end_column=last_col)


def _write(ws, row, col, value, font=None, alignment=None, fill=None, with_border=False):
    cell = ws.cell(row=row, column=col, value=value)
    if font:
        cell.font = font
    if alignment:
        cell.alignment = alignment
    if fill:
        cell.fill = fill
    if with_border:
        cell.border = border
    return cell


def write_header(ws, profile, year, month, total_days):
    _write(ws, 1, 1, "REKAPITULASI", Font(bold=True, size=14), center, header_fill)
    _merge(ws, 1, 1, LAST_COLUMN)
    _write(ws, 2, 1, "LAPORAN AKTIVITAS KERJA", Font(bold=True, size=12), center, header_fill)
    _merge(ws, 2, 1, LAST_COLUMN)

    _write(ws, 3, 1, "DATA PEGAWAI", Font(bold=True), center, header_fill, True)
    _merge(ws, 3, 1, LAST_COLUMN)

    profile_rows = [
        ("1", "Nama", profile.name),
        ("2", "NIP", profile.nip),
        ("3", "Pangkat/ Gol", profile.rank),
        ("4", "Unit Kerja", profile.unit),
    ]
    for offset, (number, label, value) in enumerate(profile_rows):
        row = 4 + offset
        _write(ws, row, 1, number, alignment=center, fill=label_fill, with_border=True)
        _write(ws, row, 2, label, with_border=True)
        _write(ws, row, 3, f": {value}", with_border=True)
        _merge(ws, row, 3, LAST_COLUMN)

    _write(ws, 9, 1, f"KEGIATAN BULAN : {MONTH_NAMES[month - 1]} {year}", Font(bold=True))
    _merge(ws, 9, 1, 6)
    _write(ws, 9, 8, f"Jml Hari Kerja : {total_days}", Font(bold=True),
           Alignment(horizontal="right"))
    _merge(ws, 9, 8, LAST_COLUMN)


def style_table(ws, blocks):
    header_row = TABLE_HEADER_ROW + 1
    for col in range(1, LAST_COLUMN + 1):
        _write(ws, header_row, col, COLUMNS[col - 1], Font(bold=True), center, header_fill, True)

    data_font = Font(size=11)
    for start, total_row in blocks:
        for row in ws.iter_rows(min_row=start, max_row=total_row, min_col=1, max_col=LAST_COLUMN):
            for cell in row:
                cell.font = data_font
                cell.border = border
                cell.alignment = left if cell.column == 6 else center
        ws.cell(row=start, column=3).number_format = "DD-MM-YYYY"

        for cell in ws[total_row]:
            if cell.column <= LAST_COLUMN:
                cell.fill = total_fill
                cell.font = Font(bold=True)
        ws.cell(row=total_row, column=3).alignment = Alignment(horizontal="right")
        _merge(ws, total_row, 3, 7)

        if total_row - 1 > start:
            for col in (1, 2, 3):
                ws.merge_cells(start_row=start, start_column=col, end_row=total_row - 1, end_column=col)


def write_summary(ws, row, stats):
    bold = Font(bold=True)
    percentage = month_attendance(stats)
    lines = [
        ("Total Aktivitas Tugas Jabatan perbulan (menit)", stats.total_minutes, "100,0%"),
        ("Total Aktivitas Tugas Tambahan perbulan (menit)", 0, ""),
        ("Total Aktivitas Perbulan (menit)", stats.total_minutes, ""),
    ]
    if stats.leave_days > 0:
        lines.append((
            f"Hari Tidak Efektif (IS: {stats.sick_leave_days}, LN: {stats.holiday_days})",
            f"{stats.leave_days} hari",
            "",
        ))
    lines.append(("Total Pasien (Umum/Rujukan/Khusus)",
                  stats.total_patients,
                  f"{stats.patients_general}/{stats.patients_referral}/{stats.patients_specialist}"))
    lines.append(("Capaian Prestasi Kerja", "", f"{percentage:.1f}%"))

    for label, value, extra in lines:
        _write(ws, row, 6, label, bold, left, with_border=True)
        _write(ws, row, 8, value, bold, Alignment(horizontal="right"), with_border=True)
        _write(ws, row, 9, extra, Font(bold=True, size=12), center, with_border=True)
        row += 1
    return row


def write_signature(ws, row, profile, settings):
    supervisor_title = settings.get("supervisorTitle") or DEFAULT_SUPERVISOR_TITLE
    supervisor_name = settings.get("supervisorName") or DEFAULT_SUPERVISOR_NAME
    supervisor_nip = settings.get("supervisorNip") or DEFAULT_SUPERVISOR_NIP

    _write(ws, row, 1, "Mengetahui", alignment=center)
    _merge(ws, row, 1, 5)
    row += 1
    _write(ws, row, 1, supervisor_title, Font(bold=True), center)
    _merge(ws, row, 1, 5)
    _write(ws, row, 8, "ASN Yang dinilai", Font(bold=True), center)
    _merge(ws, row, 8, LAST_COLUMN)
    row += 4

    signed = Font(bold=True, underline="single")
    _write(ws, row, 1, supervisor_name, signed, center)
    _merge(ws, row, 1, 5)
    _write(ws, row, 8, profile.name, signed, center)
    _merge(ws, row, 8, LAST_COLUMN)
    row += 1
    _write(ws, row, 1, f"NIP. {supervisor_nip}", alignment=center)
    _merge(ws, row, 1, 5)
    _write(ws, row, 8, f"NIP. {profile.nip}", alignment=center)
    _merge(ws, row, 8, LAST_COLUMN)
    return row + 1


def write_instructions(ws, row):
    _write(ws, row, 1, "Petunjuk :", Font(bold=True))
    row += 1
    for line in INSTRUCTIONS:
        _write(ws, row, 1, line, Font(size=10))
        _merge(ws, row, 1, LAST_COLUMN)
        row += 1
    return row


def setup_page(ws):
    for index, width in enumerate(COLUMN_WIDTHS, start=1):
        ws.column_dimensions[get_column_letter(index)].width = width

    ws.page_margins = PageMargins(
        left=0.3, right=0.3,
        top=0.4, bottom=0.4,
        header=0.3, footer=0.3
    )
    ws.page_setup.orientation = ws.ORIENTATION_LANDSCAPE
    ws.page_setup.paperSize = ws.PAPERSIZE_A4
    ws.page_setup.fitToWidth = 1
    ws.page_setup.fitToHeight = 0
    ws.sheet_properties.pageSetUpPr.fitToPage = True
    ws.print_title_rows = f"{TABLE_HEADER_ROW + 1}:{TABLE_HEADER_ROW + 1}"


def write_report(file_path, profile, records, year, month, settings=None):
    settings = settings or {}
    stats = month_stats(records, year, month)
    rows, blocks = build_table_rows(records)
    sheet_name = report_sheet_name(year, month)

    df = pd.DataFrame(rows, columns=COLUMNS)
    with pd.ExcelWriter(file_path, engine="openpyxl", date_format="DD-MM-YYYY") as writer:
        df.to_excel(writer, sheet_name=sheet_name, startrow=TABLE_HEADER_ROW, index=False)
        ws = writer.sheets[sheet_name]

        write_header(ws, profile, year, month, stats.total_days)
        style_table(ws, blocks)

        row = TABLE_HEADER_ROW + len(rows) + 3
        row = write_summary(ws, row, stats)
        row = write_signature(ws, row + 1, profile, settings)
        write_instructions(ws, row + 1)
        setup_page(ws)

    logger.info("Laporan %s ditulis: %d hari", file_path, stats.total_days)
    return file_path


def export_month(storage, year, month, folder=REPORTS_FOLDER, file_path=None):
    records = storage.list_in_range(year, month)
    if not records:
        raise EmptyReport("Tidak ada data untuk diexport")

    if file_path is None:
        os.makedirs(folder, exist_ok=True)
        file_path = os.path.join(folder, report_file_name(year, month))

    return write_report(
        file_path,
        storage.get_profile(),
        records,
        year,
        month,
        storage.get_settings(),
    )

import os

APP_NAME = "LAK Puskesmas"
APP_TITLE = "Laporan Aktivitas Kerja"
APP_VERSION = "1.0"

PROGRAM_STORAGE = os.getenv("LAK_DATA_DIR", "data")
PROFILE_FILE = "profile.json"
TEMPLATES_FILE = "templates.json"
ACTIVITIES_FILE = "activities.json"
SETTINGS_FILE = "settings.json"
REPORTS_FOLDER = "laporan"
LOGO_FILE = "logo.png"

FIREBASE_API_KEY = os.getenv("LAK_FIREBASE_API_KEY", "")
FIREBASE_DATABASE_URL = os.getenv("LAK_FIREBASE_DATABASE_URL", "")
CLOUD_TIMEOUT = 15

DAY_NAMES = ["Minggu", "Senin", "Selasa", "Rabu", "Kamis", "Jumat", "Sabtu"]
MONTH_NAMES = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember"
]

ACTIVITY_CODES = [
    "Apel Pagi",
    "Persiapan",
    "Poli Umum",
    "Poli Khusus",
    "Admin/Laporan",
    "Kunjungan Rumah",
    "Posyandu",
    "Penyuluhan",
    "Rapat",
    "Lainnya"
]
CODE_GENERAL_CLINIC = "Poli Umum"
CODE_SPECIALIST_CLINIC = "Poli Khusus"
CODE_MEETING = "Rapat"
CODE_SICK_LEAVE = "Izin Sakit"
CODE_NATIONAL_HOLIDAY = "Libur Nasional"

REMARK_DUTY = "TJ"
REMARK_SICK_LEAVE = "IS"
REMARK_NATIONAL_HOLIDAY = "LN"

DEFAULT_VOLUME = "1 kegiatan"
MEETING_START = "07:30"
MEETING_END = "15:00"
NO_TIME = "-"

TARGET_WORKING_DAYS = 22

DEFAULT_SUPERVISOR_TITLE = "Kepala UPTD Puskesmas"
DEFAULT_SUPERVISOR_NAME = ""
DEFAULT_SUPERVISOR_NIP = ""

WINDOW_WIDTH = 980
WINDOW_HEIGHT = 680
DEFAULT_FONT = ("Arial", 10)
TITLE_FONT = ("Arial", 18, "bold")
CLOCK_FONT = ("Arial", 14, "bold")

import logging
import os
import threading
from datetime import date, datetime

import tkinter as tk
from tkinter import filedialog, messagebox, simpledialog, ttk

from PIL import Image, ImageTk

from lak.cloud import CloudSync
from lak.constants import (
    ACTIVITY_CODES,
    APP_NAME,
    APP_TITLE,
    MONTH_NAMES,
    REPORTS_FOLDER,
    LOGO_FILE,
    WINDOW_WIDTH,
    WINDOW_HEIGHT,
    TITLE_FONT,
    CLOCK_FONT
)
from lak.errors import CloudError, ImportFailed, LakError, StorageError, ValidationError
from lak.export import export_month
from lak.importer import merge_into, parse
from lak.logic import DaySession, build, day_name, delete_day, save_day
from lak.models import DayType, Profile
from lak.reports import (
    month_attendance,
    month_overview,
    month_stats,
    recent_activities,
    records_to_dataframe,
    stats_for_month
)
from lak.storage import Storage
from lak.templates import TemplateCatalog, activities_from_rows

logger = logging.getLogger(__name__)

DAY_TYPE_CHOICES = [
    (DayType.NORMAL, "Hari Kerja (Template)"),
    (DayType.MEETING, "Rapat / Kegiatan Khusus"),
    (DayType.SICK_LEAVE, "Izin Sakit"),
    (DayType.NATIONAL_HOLIDAY, "Libur Nasional"),
]

button_style = {"font": ("Arial", 10), "relief": "raised", "bd": 1, "padx": 8, "pady": 3}


class LakApp:
    def __init__(self, master, storage=None):
        self.master = master
        self.storage = storage or Storage()
        self.storage.initialize()
        self.catalog = TemplateCatalog(self.storage)
        self.cloud = CloudSync(self.storage)
        self.session = DaySession(date.today())

        master.title(f"{APP_NAME} - {APP_TITLE}")
        master.geometry(f"{WINDOW_WIDTH}x{WINDOW_HEIGHT}")
        master.configure(bg="white")
        master.option_add("*Font", "Arial 10")

        self.day_type_var = tk.StringVar(value=DayType.NORMAL.value)
        self.note_var = tk.StringVar()
        self.date_var = tk.StringVar()
        self.general_var = tk.IntVar(value=0)
        self.referral_var = tk.IntVar(value=0)
        self.specialist_var = tk.IntVar(value=0)
        self.status_var = tk.StringVar()
        self.report_month = tk.StringVar(value=MONTH_NAMES[date.today().month - 1])
        self.report_year = tk.IntVar(value=date.today().year)

        self.create_header()
        body = tk.Frame(master, bg="white")
        body.pack(fill="both", expand=True, padx=10, pady=5)
        self.create_daily_input(body)
        self.create_dashboard(body)
        self.create_toolbar()

        self.load_session()
        self.refresh_dashboard()

    # ==================================================
    # Header
    # ==================================================

    def create_header(self):
        header = tk.Frame(self.master, bg="white")
        header.pack(fill="x", pady=5)

        if os.path.exists(LOGO_FILE):
            try:
                logo = Image.open(LOGO_FILE).resize((64, 64))
                self.logo_image = ImageTk.PhotoImage(logo)
                tk.Label(header, image=self.logo_image, bg="white").pack(side="left", padx=10)
            except OSError:
                logger.warning("Logo %s tidak dapat dibuka", LOGO_FILE)

        tk.Label(header, text=APP_TITLE, font=TITLE_FONT, fg="#2c3e50", bg="white").pack(side="left", padx=10)

        self.clock_label = tk.Label(header, font=CLOCK_FONT, fg="black", bg="white")
        self.clock_label.pack(side="right", padx=10)
        self.profile_label = tk.Label(header, font=("Arial", 11), fg="#3498db", bg="white")
        self.profile_label.pack(side="right", padx=10)

        self.update_clock()
        self.update_profile_display()

    def update_clock(self):
        self.clock_label.config(text=datetime.now().strftime("%H:%M:%S"))
        self.master.after(1000, self.update_clock)

    def update_profile_display(self):
        profile = self.storage.get_profile()
        text = profile.name or "Profil belum diisi"
        if profile.nip:
            text += f" (NIP {profile.nip})"
        self.profile_label.config(text=text)

    # ==================================================
    # Input harian
    # ==================================================

    def create_daily_input(self, parent):
        frame = tk.LabelFrame(parent, text="Input Harian", bg="white", fg="#2c3e50",
                              font=("Arial", 12, "bold"), padx=10, pady=10)
        frame.pack(side="left", fill="both", expand=True, padx=5)

        date_row = tk.Frame(frame, bg="white")
        date_row.pack(fill="x", pady=3)
        tk.Button(date_row, text="◀", command=lambda: self.change_date(-1), **button_style).pack(side="left")
        date_entry = tk.Entry(date_row, textvariable=self.date_var, width=12, justify="center")
        date_entry.pack(side="left", padx=5)
        date_entry.bind("<Return>", lambda event: self.on_date_entered())
        tk.Button(date_row, text="▶", command=lambda: self.change_date(1), **button_style).pack(side="left")
        self.day_label = tk.Label(date_row, font=("Arial", 12, "bold"), fg="#f39c12", bg="white")
        self.day_label.pack(side="left", padx=10)

        self.template_label = tk.Label(frame, font=("Arial", 11, "italic"), fg="#2c3e50", bg="white")
        self.template_label.pack(anchor="w", pady=3)

        self.preview = tk.Listbox(frame, height=5, bg="#ecf0f1", fg="#2c3e50")
        self.preview.pack(fill="x", pady=3)

        type_frame = tk.Frame(frame, bg="white")
        type_frame.pack(fill="x", pady=3)
        for day_type, label in DAY_TYPE_CHOICES:
            tk.Radiobutton(
                type_frame, text=label, value=day_type.value, variable=self.day_type_var,
                command=self.on_day_type_changed, bg="white"
            ).pack(anchor="w")

        note_row = tk.Frame(frame, bg="white")
        note_row.pack(fill="x", pady=3)
        tk.Label(note_row, text="Keterangan:", bg="white").pack(side="left")
        tk.Entry(note_row, textvariable=self.note_var, width=35).pack(side="left", padx=5)

        patient_frame = tk.Frame(frame, bg="white")
        patient_frame.pack(fill="x", pady=5)
        self.patient_spinboxes = []
        for col, (label, var) in enumerate([
            ("Pasien Umum", self.general_var),
            ("Rujukan", self.referral_var),
            ("Poli Khusus", self.specialist_var),
        ]):
            tk.Label(patient_frame, text=label, bg="white").grid(row=0, column=col, padx=5)
            spin = tk.Spinbox(patient_frame, from_=0, to=999, textvariable=var, width=6,
                              command=self.update_patient_total, justify="center")
            spin.grid(row=1, column=col, padx=5)
            spin.bind("<KeyRelease>", lambda event: self.update_patient_total())
            self.patient_spinboxes.append(spin)
        self.total_label = tk.Label(patient_frame, font=("Arial", 12, "bold"), fg="#27ae60", bg="white")
        self.total_label.grid(row=1, column=3, padx=10)

        action_row = tk.Frame(frame, bg="white")
        action_row.pack(fill="x", pady=8)
        tk.Button(action_row, text="Simpan Hari Ini 💾", command=self.save_current_day,
                  bg="#27ae60", fg="white", **button_style).pack(side="left", padx=3)
        tk.Button(action_row, text="Hapus 🗑️", command=self.delete_current_day,
                  bg="#e74c3c", fg="white", **button_style).pack(side="left", padx=3)
        tk.Label(action_row, textvariable=self.status_var, fg="#7f8c8d", bg="white").pack(side="left", padx=10)

    def _read_patients(self):
        values = []
        for var in (self.general_var, self.referral_var, self.specialist_var):
            try:
                values.append(max(0, int(var.get())))
            except (tk.TclError, ValueError):
                values.append(0)
        return values

    def update_patient_total(self):
        self.total_label.config(text=f"Total: {sum(self._read_patients())}")
        self.status_var.set("⏳ Siap disimpan")

    def sync_session_from_form(self):
        self.session.set_patients(*self._read_patients())
        day_type = DayType(self.day_type_var.get())
        self.session.activate(day_type, self.note_var.get().strip() or None)

    def load_session(self):
        record = self.storage.get(self.session.iso_date)
        self.session.load(record)
        self.date_var.set(self.session.iso_date)
        self.day_type_var.set(self.session.day_type.value)
        self.note_var.set(self.session.note or "")
        self.general_var.set(self.session.patients_general)
        self.referral_var.set(self.session.patients_referral)
        self.specialist_var.set(self.session.patients_specialist)
        self.update_patient_total()
        self.status_var.set("✅ Data tersimpan" if record else "📝 Belum ada data")
        self.render_session()

    def render_session(self):
        self.day_label.config(text=day_name(self.session.date))
        self.template_label.config(text=self.session.label())

        normal = self.session.day_type is DayType.NORMAL
        state = "normal" if self.session.day_type in (DayType.NORMAL, DayType.MEETING) else "disabled"
        for spin in self.patient_spinboxes:
            spin.config(state=state)

        self.preview.delete(0, tk.END)
        if normal and self.session.is_sunday:
            self.preview.insert(tk.END, "Hari Minggu - Libur. Tidak ada kegiatan pada hari Minggu")
            return
        try:
            record = build(self.session, self.catalog)
        except ValidationError as e:
            self.preview.insert(tk.END, str(e))
            return
        for act in record.activities:
            self.preview.insert(tk.END, f"{act.start} - {act.end}  {act.description} ({act.minutes} menit)")
        self.preview.insert(tk.END, f"Total: {record.total_minutes} menit")

    def change_date(self, delta):
        self.session.shift(delta)
        self.load_session()

    def on_date_entered(self):
        try:
            self.session = DaySession(self.date_var.get())
        except ValueError:
            messagebox.showerror("❌ Error", "Format tanggal harus YYYY-MM-DD")
            self.date_var.set(self.session.iso_date)
            return
        self.load_session()

    def on_day_type_changed(self):
        self.sync_session_from_form()
        self.status_var.set("⏳ Siap disimpan")
        self.render_session()

    def save_current_day(self):
        self.sync_session_from_form()
        try:
            record = save_day(self.session, self.catalog, self.storage)
        except StorageError as e:
            messagebox.showwarning("⚠️ Peringatan", f"Data belum tersimpan:\n{e}")
            return
        except ValidationError as e:
            messagebox.showwarning("⚠️ Peringatan", str(e))
            return
        self.status_var.set(f"✅ Tersimpan ({record.total_minutes} menit)")
        self.render_session()
        self.refresh_dashboard()

    def delete_current_day(self):
        if self.storage.get(self.session.iso_date) is None:
            return
        if not messagebox.askyesno("Hapus", f"Hapus data tanggal {self.session.iso_date}?"):
            return
        try:
            delete_day(self.session, self.storage)
        except StorageError as e:
            messagebox.showwarning("⚠️ Peringatan", str(e))
            return
        self.load_session()
        self.refresh_dashboard()

    # ==================================================
    # Dashboard
    # ==================================================

    def create_dashboard(self, parent):
        frame = tk.LabelFrame(parent, text="Ringkasan Bulan Ini", bg="white", fg="#2c3e50",
                              font=("Arial", 12, "bold"), padx=10, pady=10)
        frame.pack(side="right", fill="both", expand=True, padx=5)

        self.stats_label = tk.Label(frame, justify="left", bg="white", font=("Arial", 11))
        self.stats_label.pack(anchor="w")

        self.recent_tree = ttk.Treeview(
            frame,
            columns=("tanggal", "hari", "kegiatan", "pasien", "menit"),
            show="headings",
            height=8
        )
        for column, title, width in [
            ("tanggal", "Tanggal", 90),
            ("hari", "Hari", 70),
            ("kegiatan", "Kegiatan", 70),
            ("pasien", "Pasien", 60),
            ("menit", "Menit", 60),
        ]:
            self.recent_tree.heading(column, text=title, anchor="center")
            self.recent_tree.column(column, width=width, anchor="center")
        self.recent_tree.pack(fill="both", expand=True, pady=8)
        self.recent_tree.bind("<Double-Button-1>", self.on_recent_selected)

    def refresh_dashboard(self):
        today = date.today()
        stats = stats_for_month(self.storage, today.year, today.month)
        overview = month_overview(stats)
        self.stats_label.config(text=(
            f"Hari kerja: {stats.total_days}\n"
            f"Total menit: {stats.total_minutes} ({round(stats.total_minutes / 60)} jam)\n"
            f"Total pasien: {stats.total_patients} "
            f"(Umum {stats.patients_general}, Rujukan {stats.patients_referral}, "
            f"Khusus {stats.patients_specialist})\n"
            f"Total kegiatan: {stats.total_activities}\n"
            f"Rata-rata: {overview.avg_minutes_per_day} menit, "
            f"{overview.avg_patients_per_day} pasien per hari\n"
            f"Capaian: {month_attendance(stats):.1f}%"
        ))

        for item in self.recent_tree.get_children():
            self.recent_tree.delete(item)
        for act in recent_activities(self.storage, limit=10):
            self.recent_tree.insert("", "end", values=(
                act["date"], act["hari"], act["activityCount"], act["totalPatients"], act["totalMenit"]
            ))

    def on_recent_selected(self, event):
        selection = self.recent_tree.selection()
        if not selection:
            return
        iso = self.recent_tree.item(selection[0], "values")[0]
        self.session = DaySession(iso)
        self.load_session()

    # ==================================================
    # Toolbar
    # ==================================================

    def create_toolbar(self):
        bar = tk.Frame(self.master, bg="white")
        bar.pack(fill="x", pady=8, padx=10)

        ttk.Combobox(bar, textvariable=self.report_month, values=MONTH_NAMES,
                     state="readonly", width=10).pack(side="left", padx=2)
        tk.Spinbox(bar, from_=2000, to=2100, textvariable=self.report_year, width=6).pack(side="left", padx=2)

        buttons = [
            ("Laporan Bulanan 📋", self.show_month_report, "#27ae60"),
            ("Export Laporan 📊", self.export_report, "#d35400"),
            ("Import Excel 📥", self.import_excel, "#3498db"),
            ("Template 📑", self.manage_templates, "#8e44ad"),
            ("Profil 👤", self.edit_profile, "#16a085"),
            ("Backup 💾", self.backup_data, "#2c3e50"),
            ("Restore ♻️", self.restore_data, "#7f8c8d"),
            ("Upload Cloud ☁️", lambda: self.run_cloud(self.cloud.push, "upload"), "#2980b9"),
            ("Download Cloud ☁️", lambda: self.run_cloud(self.cloud.pull, "download"), "#2980b9"),
        ]
        for text, command, color in buttons:
            tk.Button(bar, text=text, command=command, bg=color, fg="white",
                      **button_style).pack(side="left", padx=2)

    def _selected_period(self):
        return int(self.report_year.get()), MONTH_NAMES.index(self.report_month.get()) + 1

    def show_month_report(self):
        year, month = self._selected_period()
        records = self.storage.list_in_range(year, month)
        if not records:
            messagebox.showinfo("ℹ️ Info", f"Belum ada data untuk {MONTH_NAMES[month - 1]} {year}")
            return
        stats = month_stats(records, year, month)
        df = records_to_dataframe(records)

        window = tk.Toplevel(self.master)
        window.title(f"Laporan {MONTH_NAMES[month - 1]} {year}")
        window.configure(bg="white")

        tree = ttk.Treeview(window, columns=list(df.columns), show="headings", height=18)
        for column in df.columns:
            tree.heading(column, text=column, anchor="center")
            tree.column(column, width=90, anchor="center")
        for row in df.itertuples(index=False):
            tree.insert("", "end", values=list(row))
        tree.pack(fill="both", expand=True, padx=8, pady=8)

        tk.Label(window, bg="white", justify="left", font=("Arial", 10, "bold"), text=(
            f"Hari kerja: {stats.total_days}  |  Total menit: {df['Menit'].sum()}  |  "
            f"Total pasien: {df['Total Pasien'].sum()}  |  "
            f"Capaian: {month_attendance(stats):.1f}%"
        )).pack(anchor="w", padx=8, pady=(0, 8))

    def export_report(self):
        year, month = self._selected_period()
        try:
            path = export_month(self.storage, year, month, folder=REPORTS_FOLDER)
        except ValidationError as e:
            messagebox.showwarning("⚠️ Peringatan", str(e))
            return
        except OSError as e:
            logger.exception("Export gagal")
            messagebox.showerror("❌ Error", f"Gagal mengexport:\n{e}")
            return
        messagebox.showinfo("✅ Berhasil", f"File {path} berhasil dibuat")

    def import_excel(self):
        file_path = filedialog.askopenfilename(filetypes=[("Excel", "*.xlsx *.xlsm")])
        if not file_path:
            return
        try:
            result = parse(file_path)
        except ImportFailed as e:
            messagebox.showerror("❌ Error", f"Gagal mengimport file:\n{e}")
            return

        message = (
            f"File: {os.path.basename(file_path)}\n"
            f"{len(result.records)} hari kerja, {result.activity_count} aktivitas"
        )
        if not messagebox.askyesno("Preview Import", message + "\n\nImport data?"):
            return
        import_profile = bool(result.profile.name) and messagebox.askyesno(
            "Profil", f"Import profil juga?\nNama: {result.profile.name}\nNIP: {result.profile.nip}"
        )
        try:
            count = merge_into(self.storage, result, import_profile=import_profile)
        except StorageError as e:
            messagebox.showwarning("⚠️ Peringatan", str(e))
            return
        messagebox.showinfo("✅ Berhasil", f"Berhasil mengimport {count} hari data")
        self.update_profile_display()
        self.load_session()
        self.refresh_dashboard()

    def backup_data(self):
        file_path = filedialog.asksaveasfilename(
            defaultextension=".json",
            initialfile=f"LAK_Backup_{date.today().isoformat()}.json",
            filetypes=[("JSON", "*.json")]
        )
        if not file_path:
            return
        try:
            self.storage.write_backup(file_path)
        except LakError as e:
            messagebox.showerror("❌ Error", str(e))
            return
        messagebox.showinfo("✅ Berhasil", "Backup berhasil disimpan")

    def restore_data(self):
        file_path = filedialog.askopenfilename(filetypes=[("JSON", "*.json")])
        if not file_path:
            return
        if not messagebox.askyesno("Restore", "Ini akan menimpa data yang ada. Lanjutkan?"):
            return
        try:
            self.storage.read_backup(file_path)
        except LakError as e:
            messagebox.showerror("❌ Error", str(e))
            return
        messagebox.showinfo("✅ Berhasil", "Data berhasil direstore")
        self.update_profile_display()
        self.load_session()
        self.refresh_dashboard()

    def edit_profile(self):
        profile = self.storage.get_profile()
        window = tk.Toplevel(self.master)
        window.title("Profil Pegawai")
        window.configure(bg="white")

        fields = [("Nama", "name"), ("NIP", "nip"), ("Pangkat/Gol", "rank"), ("Unit Kerja", "unit")]
        variables = {}
        for row, (label, attr) in enumerate(fields):
            tk.Label(window, text=label, bg="white").grid(row=row, column=0, padx=8, pady=4, sticky="w")
            var = tk.StringVar(value=getattr(profile, attr))
            tk.Entry(window, textvariable=var, width=40).grid(row=row, column=1, padx=8, pady=4)
            variables[attr] = var

        settings = self.storage.get_settings()
        supervisor_fields = [
            ("Jabatan Atasan", "supervisorTitle"),
            ("Nama Atasan", "supervisorName"),
            ("NIP Atasan", "supervisorNip"),
        ]
        supervisor_vars = {}
        for row, (label, key) in enumerate(supervisor_fields, start=len(fields)):
            tk.Label(window, text=label, bg="white").grid(row=row, column=0, padx=8, pady=4, sticky="w")
            var = tk.StringVar(value=settings.get(key, ""))
            tk.Entry(window, textvariable=var, width=40).grid(row=row, column=1, padx=8, pady=4)
            supervisor_vars[key] = var

        def save_and_close():
            updated = Profile(**{attr: var.get().strip() for attr, var in variables.items()})
            saved = self.storage.save_profile(updated)
            saved = self.storage.update_settings(
                **{key: var.get().strip() for key, var in supervisor_vars.items()}
            ) and saved
            if not saved:
                messagebox.showwarning("⚠️ Peringatan", "Profil belum tersimpan", parent=window)
                return
            self.update_profile_display()
            window.destroy()

        tk.Button(window, text="Simpan", command=save_and_close, bg="#27ae60", fg="white",
                  **button_style).grid(row=len(fields) + len(supervisor_fields), column=0, columnspan=2, pady=8)

    def manage_templates(self):
        window = tk.Toplevel(self.master)
        window.title("Template Kegiatan")
        window.configure(bg="white")

        listbox = tk.Listbox(window, width=70, height=12, bg="#ecf0f1")
        listbox.pack(padx=8, pady=8, fill="both", expand=True)

        def refresh():
            listbox.delete(0, tk.END)
            for template in self.catalog.list():
                listbox.insert(tk.END, f"{template.id} | {template.name}")
                for act in template.activities:
                    listbox.insert(tk.END, f"      {act.start} - {act.end}  {act.description} [{act.code}]")

        def selected_id():
            selection = listbox.curselection()
            if not selection:
                return None
            line = listbox.get(selection[0])
            if "|" not in line:
                return None
            return line.split("|")[0].strip()

        def rename():
            template_id = selected_id()
            if not template_id:
                return
            name = simpledialog.askstring("Nama Template", "Nama baru:", parent=window)
            if not name:
                return
            try:
                self.catalog.update(template_id, {"name": name})
            except LakError as e:
                messagebox.showerror("❌ Error", str(e), parent=window)
            refresh()

        def add():
            self.edit_template(window, on_saved=refresh)

        def edit():
            template_id = selected_id()
            template = self.catalog.get_by_id(template_id) if template_id else None
            if template is None:
                messagebox.showwarning("⚠️ Peringatan", "Pilih template terlebih dahulu", parent=window)
                return
            self.edit_template(window, template, on_saved=refresh)

        def remove():
            template_id = selected_id()
            if template_id and messagebox.askyesno("Hapus", f"Hapus template {template_id}?", parent=window):
                self.catalog.delete(template_id)
                refresh()

        def reset():
            if messagebox.askyesno("Reset", "Kembalikan template bawaan?", parent=window):
                self.catalog.reset_defaults()
                refresh()

        row = tk.Frame(window, bg="white")
        row.pack(pady=5)
        tk.Button(row, text="Tambah", command=add, **button_style).pack(side="left", padx=3)
        tk.Button(row, text="Edit Kegiatan", command=edit, **button_style).pack(side="left", padx=3)
        tk.Button(row, text="Ganti Nama", command=rename, **button_style).pack(side="left", padx=3)
        tk.Button(row, text="Hapus", command=remove, **button_style).pack(side="left", padx=3)
        tk.Button(row, text="Reset Bawaan", command=reset, **button_style).pack(side="left", padx=3)
        refresh()
        window.bind("<Destroy>", lambda event: self.render_session() if event.widget is window else None)

    def edit_template(self, parent, template=None, on_saved=None):
        """Form for a new template, or for editing the activities of ``template``."""
        window = tk.Toplevel(parent)
        window.title("Edit Template" if template else "Tambah Template")
        window.configure(bg="white")

        name_var = tk.StringVar(value=template.name if template else "")
        description_var = tk.StringVar(value=template.description if template else "")
        head = tk.Frame(window, bg="white")
        head.pack(fill="x", padx=8, pady=6)
        tk.Label(head, text="Nama", bg="white").grid(row=0, column=0, sticky="w")
        tk.Entry(head, textvariable=name_var, width=40).grid(row=0, column=1, padx=5, pady=2)
        tk.Label(head, text="Deskripsi", bg="white").grid(row=1, column=0, sticky="w")
        tk.Entry(head, textvariable=description_var, width=40).grid(row=1, column=1, padx=5, pady=2)

        table = tk.Frame(window, bg="white")
        table.pack(fill="both", expand=True, padx=8)
        for col, title in enumerate(["Mulai", "Selesai", "Uraian Kegiatan", "Kode", ""]):
            tk.Label(table, text=title, bg="white", font=("Arial", 9, "bold")).grid(row=0, column=col)

        rows = []

        def add_row(entry=None):
            variables = (
                tk.StringVar(value=entry.start if entry else ""),
                tk.StringVar(value=entry.end if entry else ""),
                tk.StringVar(value=entry.description if entry else ""),
                tk.StringVar(value=entry.code if entry else ACTIVITY_CODES[-1]),
            )
            r = table.grid_size()[1]
            widgets = [
                tk.Entry(table, textvariable=variables[0], width=7),
                tk.Entry(table, textvariable=variables[1], width=7),
                tk.Entry(table, textvariable=variables[2], width=40),
                ttk.Combobox(table, textvariable=variables[3], values=ACTIVITY_CODES,
                             width=14, state="readonly"),
            ]
            item = {"vars": variables, "widgets": widgets}

            def remove_row():
                for widget in item["widgets"]:
                    widget.destroy()
                rows.remove(item)

            widgets.append(tk.Button(table, text="✕", command=remove_row, **button_style))
            for col, widget in enumerate(widgets):
                widget.grid(row=r, column=col, padx=2, pady=1)
            rows.append(item)

        for entry in (template.activities if template else []):
            add_row(entry)
        if not rows:
            add_row()

        def save():
            try:
                activities = activities_from_rows(
                    [tuple(var.get() for var in item["vars"]) for item in rows]
                )
                self.catalog.save(
                    template.id if template else None,
                    name_var.get().strip(),
                    description_var.get().strip(),
                    activities,
                )
            except LakError as e:
                messagebox.showerror("❌ Error", str(e), parent=window)
                return
            if on_saved:
                on_saved()
            window.destroy()

        buttons = tk.Frame(window, bg="white")
        buttons.pack(pady=8)
        tk.Button(buttons, text="+ Baris", command=add_row, **button_style).pack(side="left", padx=3)
        tk.Button(buttons, text="Simpan", command=save, bg="#27ae60", fg="white",
                  **button_style).pack(side="left", padx=3)

    # ==================================================
    # Cloud
    # ==================================================

    def run_cloud(self, action, label):
        if self.cloud.busy:
            messagebox.showwarning("⚠️ Peringatan", "Sinkronisasi sedang berjalan")
            return
        self.status_var.set(f"☁️ {label} berjalan...")

        def worker():
            try:
                result = action()
            except (CloudError, StorageError) as e:
                self.master.after(0, lambda error=e: self.on_cloud_failed(error))
                return
            self.master.after(0, lambda: self.on_cloud_done(label, result))

        threading.Thread(target=worker, daemon=True).start()

    def on_cloud_done(self, label, result):
        self.status_var.set(f"✅ Cloud {label} selesai")
        messagebox.showinfo("✅ Berhasil", f"Sinkronisasi {label} berhasil")
        if label == "download":
            self.update_profile_display()
            self.load_session()
            self.refresh_dashboard()

    def on_cloud_failed(self, error):
        logger.error("Sinkronisasi Cloud gagal: %s", error)
        self.status_var.set("❌ Cloud gagal")
        messagebox.showerror("❌ Error", str(error))

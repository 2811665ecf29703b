import uuid
from dataclasses import replace

from lak.constants import ACTIVITY_CODES
from lak.errors import InvalidTemplate, InvalidTimeRange, StorageError, TemplateNotFound
from lak.models import ActivityEntry, Template, calculate_minutes

TEMPLATE_WITH_ASSEMBLY = "weekday-apel"
TEMPLATE_PREPARATION = "weekday-prep"
TEMPLATE_SATURDAY = "saturday"

REPORTING_TEXT = "Pencatatan dan pelaporan hasil Kegiatan"
PREPARATION_TEXT = "Persiapan pelayanan dan sterilisasi alat"


def _entry(start, end, description, code):
    return ActivityEntry(start=start, end=end, description=description, code=code)


DEFAULT_TEMPLATES = [
    Template(
        id=TEMPLATE_WITH_ASSEMBLY,
        name="Hari Kerja (Apel)",
        description="Senin, Selasa, Kamis dengan apel pagi",
        activities=[
            _entry("07:30", "08:00", "Apel pagi", "Apel Pagi"),
            _entry("08:00", "12:30", "Pelayanan poli umum", "Poli Umum"),
            _entry("12:30", "14:00", "Pemeriksaan poli khusus", "Poli Khusus"),
            _entry("14:00", "15:00", REPORTING_TEXT, "Admin/Laporan"),
        ],
    ),
    Template(
        id=TEMPLATE_PREPARATION,
        name="Hari Kerja (Persiapan)",
        description="Rabu, Jumat dengan persiapan pelayanan",
        activities=[
            _entry("07:30", "08:00", PREPARATION_TEXT, "Persiapan"),
            _entry("08:00", "12:30", "Pelayanan poli umum", "Poli Umum"),
            _entry("12:30", "14:00", "Pemeriksaan poli khusus", "Poli Khusus"),
            _entry("14:00", "15:00", REPORTING_TEXT, "Admin/Laporan"),
        ],
    ),
    Template(
        id=TEMPLATE_SATURDAY,
        name="Sabtu",
        description="Jadwal Sabtu (jam pendek)",
        activities=[
            _entry("08:00", "08:15", PREPARATION_TEXT, "Persiapan"),
            _entry("08:15", "10:30", "Pelayanan poli umum", "Poli Umum"),
            _entry("10:30", "11:30", "Pemeriksaan poli khusus", "Poli Khusus"),
            _entry("11:30", "12:00", REPORTING_TEXT, "Admin/Laporan"),
        ],
    ),
]

UPDATABLE_FIELDS = ("name", "description", "activities")


def validate_activities(activities):
    """Coerce to ActivityEntry and check every time range."""
    result = []
    for item in activities:
        entry = item if isinstance(item, ActivityEntry) else ActivityEntry.from_dict(item)
        if not entry.description.strip():
            raise InvalidTemplate("Uraian kegiatan tidak boleh kosong")
        if entry.code and entry.code not in ACTIVITY_CODES:
            raise InvalidTemplate(f"Kode kegiatan tidak dikenal: {entry.code}")
        try:
            calculate_minutes(entry.start, entry.end)
        except InvalidTimeRange as e:
            raise InvalidTemplate(str(e)) from e
        result.append(entry)
    return result


def validate_template(template):
    if not template.name.strip():
        raise InvalidTemplate("Nama template tidak boleh kosong")
    template.activities = validate_activities(template.activities)
    return template


def apply_partial_update(template, changes):
    """Return a copy of ``template`` with ``changes`` applied.

    Only name, description and activities may change; the merged result is
    validated before it is returned.
    """
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if "id" in unknown and changes["id"] == template.id:
        unknown.discard("id")
    if unknown:
        raise InvalidTemplate(f"Field tidak dapat diubah: {', '.join(sorted(unknown))}")

    values = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
    if "activities" in values:
        values["activities"] = list(values["activities"])
    updated = replace(template, **values)
    return validate_template(updated)


def activities_from_rows(rows):
    """Activities typed into the template editor, as (start, end, description, code) rows.

    Rows with no times and no description are skipped.
    """
    activities = []
    for row in rows:
        start, end, description, code = [str(v or "").strip() for v in row]
        if not (start or end or description):
            continue
        activities.append(ActivityEntry(start=start, end=end, description=description, code=code))
    if not activities:
        raise InvalidTemplate("Template harus memiliki minimal satu kegiatan")
    return activities


class TemplateCatalog:
    def __init__(self, storage):
        self.storage = storage

    def list(self):
        return self.storage.get_templates()

    def get_by_id(self, template_id):
        for template in self.list():
            if template.id == template_id:
                return template
        return None

    def add(self, template):
        templates = self.list()
        existing = {t.id for t in templates}
        if not template.id:
            template.id = f"template-{uuid.uuid4().hex[:12]}"
        elif template.id in existing:
            raise InvalidTemplate(f"Template dengan id {template.id} sudah ada")

        validate_template(template)
        templates.append(template)
        if not self.storage.save_templates(templates):
            raise StorageError("Gagal menyimpan template")
        return template

    def update(self, template_id, changes):
        templates = self.list()
        for index, template in enumerate(templates):
            if template.id == template_id:
                templates[index] = apply_partial_update(template, changes)
                if not self.storage.save_templates(templates):
                    raise StorageError("Gagal menyimpan template")
                return templates[index]
        return None

    def save(self, template_id, name, description, activities):
        """Add a new template when template_id is empty, otherwise update it."""
        if not template_id:
            return self.add(Template(id="", name=name, description=description, activities=activities))
        updated = self.update(template_id, {
            "name": name,
            "description": description,
            "activities": activities,
        })
        if updated is None:
            raise TemplateNotFound(template_id)
        return updated

    def delete(self, template_id):
        templates = self.list()
        remaining = [t for t in templates if t.id != template_id]
        if len(remaining) == len(templates):
            return False
        return self.storage.save_templates(remaining)

    def reset_defaults(self):
        return self.storage.save_templates([replace(t) for t in DEFAULT_TEMPLATES])

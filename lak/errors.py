class LakError(Exception):
    """Base class for every error raised by the application."""


class ValidationError(LakError):
    pass


class SundayNotAllowed(ValidationError):
    def __init__(self, date):
        super().__init__(f"Hari Minggu tidak ada kegiatan ({date})")
        self.date = date


class TemplateNotFound(ValidationError):
    def __init__(self, template_id):
        super().__init__(f"Template tidak tersedia: {template_id}")
        self.template_id = template_id


class InvalidTimeRange(ValidationError):
    pass


class InvalidTemplate(ValidationError):
    pass


class StorageError(LakError):
    pass


class BackupError(LakError):
    pass


class ImportFailed(LakError):
    pass


class NoRecognizableSheet(ImportFailed):
    pass


class MalformedHeader(ImportFailed):
    pass


class CloudError(LakError):
    pass


class CloudNotConfigured(CloudError):
    pass


class IdentityUnavailable(CloudError):
    pass


class NoRemoteData(CloudError):
    pass


class CloudRequestFailed(CloudError):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class SyncInProgress(CloudError):
    pass


class EmptyReport(ValidationError):
    pass

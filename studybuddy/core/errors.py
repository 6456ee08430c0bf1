from enum import Enum


class ErrorKind(str, Enum):
    not_found = "not_found"
    io = "io"
    network = "network"
    missing_credential = "missing_credential"
    invalid = "invalid"


class StudyBuddyError(Exception):
    """
    Erreur de base des services. `kind` permet aux appelants
    de distinguer introuvable / disque / réseau / clé absente.
    """

    kind: ErrorKind = ErrorKind.io

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class RecordNotFoundError(StudyBuddyError):
    kind = ErrorKind.not_found

    def __init__(self, file_id: str):
        super().__init__(f"File not found: {file_id}")
        self.file_id = file_id


class StorageIOError(StudyBuddyError):
    kind = ErrorKind.io


class UnsupportedFileTypeError(StudyBuddyError):
    kind = ErrorKind.invalid


class FileTooLargeError(StudyBuddyError):
    kind = ErrorKind.invalid


class MissingCredentialError(StudyBuddyError):
    kind = ErrorKind.missing_credential

    def __init__(self, message: str = "API key not set"):
        super().__init__(message)


class AIServiceError(StudyBuddyError):
    kind = ErrorKind.network

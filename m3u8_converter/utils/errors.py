"""Custom exception classes for the M3U8 converter."""


class ConverterError(Exception):
    """Base exception for all application errors."""

    pass


class SubmissionError(ConverterError):
    """Malformed conversion request, rejected before any job exists."""

    pass


class PlaylistError(ConverterError):
    """Uploaded playlist failed inspection."""

    pass


class InvalidPlaylist(PlaylistError):
    """Document does not start with the #EXTM3U marker."""

    def __init__(self, message: str = "File is not a valid M3U8 playlist") -> None:
        super().__init__(message)


class NoStreamsFound(PlaylistError):
    """Master playlist without any usable stream entries."""

    def __init__(self, message: str = "Master playlist contains no streams") -> None:
        super().__init__(message)


class EmptyPlaylist(PlaylistError):
    """Media playlist without any segments."""

    def __init__(self, message: str = "Playlist contains no media segments") -> None:
        super().__init__(message)


class SetupError(ConverterError):
    """Pre-flight check failed; the job goes straight to error."""

    user_message = "Conversion could not be started"


class SourceNotFound(SetupError):
    """Local source file is missing."""

    user_message = "Source playlist not found"


class StorageError(SetupError):
    """Output directory is not writable."""

    user_message = "Server storage is not writable, please retry later"


class EngineError(ConverterError):
    """Remux engine reported a failure."""

    def __init__(self, message: str) -> None:
        self.raw_message = message
        super().__init__(message)


class JobNotFoundError(ConverterError):
    """Unknown or already swept job id."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Conversion not found: {job_id}")


class InvalidTransitionError(ConverterError):
    """Update would break the job state machine."""

    def __init__(self, job_id: str, current: str, requested: str) -> None:
        self.job_id = job_id
        self.current = current
        self.requested = requested
        super().__init__(f"Job {job_id} cannot move from {current} to {requested}")

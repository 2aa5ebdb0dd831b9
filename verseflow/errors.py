class VerseFlowError(Exception):
    """A failure reported to the user as a short notice."""


class PlanNotFoundError(VerseFlowError):
    pass


class NoActiveNoteError(VerseFlowError):
    pass


class UnreadableFileError(VerseFlowError):
    pass

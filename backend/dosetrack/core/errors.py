"""Module: errors.

Failure kinds of the dose tracking core. Each carries the HTTP status and a
stable machine code so the API layer can render them uniformly and the API
client can map responses back to the same classes.
"""


class DoseTrackingError(Exception):
    status_code = 400
    code = "dose_tracking_error"
    message = "Something went wrong while recording this dose."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def as_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class InvalidOrExpiredLink(DoseTrackingError):
    status_code = 404
    code = "invalid_or_expired_link"
    message = "This link is invalid or has expired. Please use the newest reminder link."


class Unauthenticated(DoseTrackingError):
    status_code = 401
    code = "unauthenticated"
    message = "Please log in to record a dose."


class NoPendingDose(DoseTrackingError):
    status_code = 409
    code = "no_pending_dose"
    message = "There is no pending dose to record right now."


class CourseAlreadyComplete(DoseTrackingError):
    status_code = 409
    code = "course_already_complete"
    message = "All doses have been recorded for this medication."


class AlreadyFinalized(DoseTrackingError):
    status_code = 409
    code = "already_finalized"
    message = "This dose was already recorded with a different status."


class MedicationNotFound(DoseTrackingError):
    status_code = 404
    code = "medication_not_found"
    message = "Medication not found."


class DoseNotFound(DoseTrackingError):
    status_code = 404
    code = "dose_not_found"
    message = "Dose not found."


ERRORS_BY_CODE: dict[str, type[DoseTrackingError]] = {
    cls.code: cls
    for cls in (
        InvalidOrExpiredLink,
        Unauthenticated,
        NoPendingDose,
        CourseAlreadyComplete,
        AlreadyFinalized,
        MedicationNotFound,
        DoseNotFound,
    )
}

class SchedulingError(Exception):
    status_code = 400

    def __init__(self, detail):
        super().__init__(detail)
        self.detail = detail


class SlotUnavailable(SchedulingError):
    status_code = 400


class ConflictingAppointments(SchedulingError):
    status_code = 400

    def __init__(self, detail, count=0):
        super().__init__(detail)
        self.count = count


class InvalidTransition(SchedulingError):
    status_code = 409


class ConcurrentWriteConflict(SchedulingError):
    status_code = 409


class NotFound(SchedulingError):
    status_code = 404


class InternalFailure(SchedulingError):
    """Store or downstream failure; the detail is never shown to the caller."""
    status_code = 500

    def __init__(self, detail="Internal server error"):
        super().__init__(detail)


class InvalidRequest(SchedulingError):
    status_code = 422

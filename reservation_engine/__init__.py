from .conflicts import ConflictChecker
from .errors import Conflict, Forbidden, InvalidInput, InvalidTransition, NotFound, ReservationError, StoreFailure
from .intervals import DateKey, DayKey, TermWeekdayKey, TimeRange, Weekday, overlaps
from .models import AdHocReservation, Caller, Privilege, RecurringReservation, Reservation, Status
from .notifications import ReservationEvent
from .service import ReservationService
from .store import ReservationStore
from .terms import TermCalendar
from .yaml_store import MemoryRecordStore, RecordStore, YamlRecordStore

__all__ = [
	"AdHocReservation",
	"Caller",
	"Conflict",
	"ConflictChecker",
	"DateKey",
	"DayKey",
	"Forbidden",
	"InvalidInput",
	"InvalidTransition",
	"MemoryRecordStore",
	"NotFound",
	"Privilege",
	"RecordStore",
	"RecurringReservation",
	"Reservation",
	"ReservationError",
	"ReservationEvent",
	"ReservationService",
	"ReservationStore",
	"Status",
	"StoreFailure",
	"TermCalendar",
	"TermWeekdayKey",
	"TimeRange",
	"Weekday",
	"YamlRecordStore",
	"overlaps",
]

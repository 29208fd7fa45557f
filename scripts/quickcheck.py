from __future__ import annotations

from datetime import date
from pathlib import Path
import tempfile
import traceback

from reservation_engine import (
    Caller,
    Conflict,
    DateKey,
    Privilege,
    ReservationService,
    TermWeekdayKey,
    TimeRange,
    Weekday,
    YamlRecordStore,
)
from reservation_engine.config import Settings
from reservation_engine.logger import configure_logging


def main() -> int:
    configure_logging("WARNING")
    print("[INFO] Room Reservation Engine Quick Check")

    with tempfile.TemporaryDirectory() as temp_dir:
        data_dir = Path(temp_dir) / "data"
        service = ReservationService.from_settings(Settings(data_dir=data_dir))
        student = Caller("student-1")
        faculty = Caller("faculty-1", Privilege.ELEVATED)

        pending = service.create("B202", TimeRange.parse("09:00", "10:00"), DateKey(date(2025, 5, 2)), student, "Study group")
        print(f"[OK] Created booking {pending.reservation_id} as {pending.status_label}")

        approved = service.transition(pending.reservation_id, "approved", faculty)
        print(f"[OK] Booking is now {approved.status_label}")

        try:
            service.create("B202", TimeRange.parse("09:30", "10:30"), DateKey(date(2025, 5, 2)), Caller("student-2"))
        except Conflict as error:
            print(f"[OK] Overlapping request refused: {error.message}")
        else:
            print("[ERROR] Overlapping request was accepted.")
            return 1

        service.create(
            "C301",
            TimeRange.parse("13:00", "14:30"),
            TermWeekdayKey(Weekday.MONDAY, "Spring 2025"),
            faculty,
            course_code="CS101",
            course_name="Introduction to Programming",
        )
        try:
            service.create("C301", TimeRange.parse("14:00", "15:00"), DateKey(date(2025, 3, 3)), student)
        except Conflict as error:
            print(f"[OK] Monday booking inside the term refused: {error.message}")
        else:
            print("[ERROR] Booking over a weekly schedule was accepted.")
            return 1

        events = YamlRecordStore(data_dir).list("reservation_events")
        print(f"[OK] Events logged: {len(events)}")

    print("[DONE] Quick check completed successfully.")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        print("[ERROR] Quick check failed.")
        traceback.print_exc()
        raise SystemExit(1)

import tempfile
import unittest
from pathlib import Path

from reservation_engine import MemoryRecordStore, StoreFailure, YamlRecordStore


class TestYamlRecordStore(unittest.TestCase):
    def test_put_get_and_replace(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            store = YamlRecordStore(Path(temp_dir) / "data")
            store.put("bookings", {"id": "b1", "resource": "A101", "status": "pending"})
            store.put("bookings", {"id": "b2", "resource": "A102", "status": "approved"})
            store.put("bookings", {"id": "b1", "resource": "A101", "status": "approved"})

            self.assertEqual(store.get("bookings", "b1")["status"], "approved")
            self.assertEqual(len(store.list("bookings")), 2)
            self.assertIsNone(store.get("bookings", "missing"))

    def test_records_survive_a_new_store_instance(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            data_dir = Path(temp_dir) / "data"
            YamlRecordStore(data_dir).put("schedules", {"id": "s1", "start_time": "13:00"})

            reopened = YamlRecordStore(data_dir)
            self.assertEqual(reopened.get("schedules", "s1"), {"id": "s1", "start_time": "13:00"})
            self.assertTrue((data_dir / "schedules.yaml").exists())
            self.assertFalse((data_dir / "schedules.yaml.tmp").exists())

    def test_list_where_filters_rows(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            store = YamlRecordStore(Path(temp_dir) / "data")
            store.put("bookings", {"id": "b1", "resource": "A101"})
            store.put("bookings", {"id": "b2", "resource": "B202"})

            rows = store.list_where("bookings", lambda row: row["resource"] == "B202")
            self.assertEqual([row["id"] for row in rows], ["b2"])

    def test_remove_reports_whether_record_existed(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            store = YamlRecordStore(Path(temp_dir) / "data")
            store.put("bookings", {"id": "b1"})

            self.assertTrue(store.remove("bookings", "b1"))
            self.assertFalse(store.remove("bookings", "b1"))
            self.assertEqual(store.list("bookings"), [])

    def test_missing_collection_reads_as_empty(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            store = YamlRecordStore(Path(temp_dir) / "data")
            self.assertEqual(store.list("bookings"), [])

    def test_non_mapping_rows_are_skipped(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            data_dir = Path(temp_dir) / "data"
            store = YamlRecordStore(data_dir)
            (data_dir / "bookings.yaml").write_text("- id: b1\n- just a string\n", encoding="utf-8")

            with self.assertLogs("reservation_engine.yaml_store", level="WARNING"):
                rows = store.list("bookings")
            self.assertEqual(rows, [{"id": "b1"}])

    def test_corrupted_yaml_raises_store_failure(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            data_dir = Path(temp_dir) / "data"
            store = YamlRecordStore(data_dir)
            (data_dir / "bookings.yaml").write_text("- id: [unclosed\n", encoding="utf-8")

            with self.assertRaises(StoreFailure):
                store.list("bookings")

    def test_top_level_mapping_raises_store_failure(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            data_dir = Path(temp_dir) / "data"
            store = YamlRecordStore(data_dir)
            (data_dir / "bookings.yaml").write_text("id: b1\n", encoding="utf-8")

            with self.assertRaises(StoreFailure):
                store.get("bookings", "b1")

    def test_records_need_an_id(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            store = YamlRecordStore(Path(temp_dir) / "data")
            with self.assertRaises(ValueError):
                store.put("bookings", {"resource": "A101"})

    def test_collection_names_are_restricted(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            store = YamlRecordStore(Path(temp_dir) / "data")
            with self.assertRaises(ValueError):
                store.list("../outside")

    def test_append_keeps_every_row(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            store = YamlRecordStore(Path(temp_dir) / "data")
            store.append("reservation_events", {"event_type": "RESERVATION_CREATED"})
            store.append("reservation_events", {"event_type": "RESERVATION_CREATED"})
            self.assertEqual(len(store.list("reservation_events")), 2)


class TestMemoryRecordStore(unittest.TestCase):
    def test_returns_copies(self) -> None:
        store = MemoryRecordStore()
        record = {"id": "b1", "status": "pending"}
        store.put("bookings", record)
        record["status"] = "approved"

        fetched = store.get("bookings", "b1")
        self.assertEqual(fetched["status"], "pending")
        fetched["status"] = "rejected"
        self.assertEqual(store.get("bookings", "b1")["status"], "pending")

    def test_remove_and_list(self) -> None:
        store = MemoryRecordStore()
        store.put("bookings", {"id": "b1"})
        store.put("bookings", {"id": "b2"})
        self.assertTrue(store.remove("bookings", "b1"))
        self.assertFalse(store.remove("schedules", "b1"))
        self.assertEqual(store.list("bookings"), [{"id": "b2"}])


if __name__ == "__main__":
    unittest.main()

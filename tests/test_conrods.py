import pytest

from models import ConrodDefinition
from services import conrod_service
from services.errors import SerialCollision, ValidationFailed
from utils import sequencer


def _create(db, name="CR-A", pin="P1", bb="BB1"):
    return conrod_service.create_conrod(
        db,
        name=name,
        dimensions={"smallEndDiameter": 10, "bigEndDiameter": 30, "centerDistance": 90},
        pin=pin,
        ball_bearing=bb,
    )


class TestSerialAllocation:

    def test_first_serial_is_one(self, db):
        assert sequencer.next_serial(db) == 1
        assert _create(db).sr_no == 1

    def test_serials_increase(self, db):
        serials = [_create(db, name=f"CR-{i}").sr_no for i in range(5)]
        assert serials == [1, 2, 3, 4, 5]

    def test_deleted_top_serial_not_reused(self, db):
        a = _create(db, name="A")
        assert a.sr_no == 1
        conrod_service.delete_conrod(db, a.id)
        b = _create(db, name="B")
        assert b.sr_no == 2

    def test_serial_continues_above_existing_rows_without_counter(self, db):
        db.add(ConrodDefinition(sr_no=7, name="legacy", dimensions={}, pin="P", ball_bearing="B"))
        db.commit()
        assert _create(db).sr_no == 8

    def test_collision_detected_by_check(self, db, monkeypatch):
        _create(db)
        _create(db)
        # a stale read of the maximum, as when another session inserted meanwhile
        monkeypatch.setattr(sequencer, "current_max", lambda db, doc_type="CONROD": 1)
        with pytest.raises(SerialCollision) as exc:
            sequencer.next_serial(db)
        assert exc.value.sr_no == 2

    def test_create_retries_after_collision(self, db, monkeypatch):
        real = conrod_service.next_serial
        calls = {"n": 0}

        def flaky(session):
            calls["n"] += 1
            if calls["n"] == 1:
                raise SerialCollision(1)
            return real(session)

        monkeypatch.setattr(conrod_service, "next_serial", flaky)
        c = _create(db)
        assert c.sr_no == 1
        assert calls["n"] == 2

    def test_create_gives_up_after_repeated_collisions(self, db, monkeypatch):
        def always(session):
            raise SerialCollision(5)

        monkeypatch.setattr(conrod_service, "next_serial", always)
        with pytest.raises(SerialCollision):
            _create(db)
        assert db.query(ConrodDefinition).count() == 0

    def test_unique_constraint_reported_as_collision(self, db, monkeypatch):
        _create(db, name="first")
        # stale allocator hands out the taken value; the insert hits the unique index
        monkeypatch.setattr(conrod_service, "next_serial", lambda session: 1)
        with pytest.raises(SerialCollision):
            conrod_service._insert_with_serial(db, name="dup", dimensions={}, pin="P", ball_bearing="B")
        assert db.query(ConrodDefinition).count() == 1


class TestConrodCrud:

    def test_blank_fields_rejected(self, db):
        with pytest.raises(ValidationFailed):
            _create(db, pin="   ")

    def test_update_keeps_serial(self, db):
        c = _create(db)
        u = conrod_service.update_conrod(
            db, c.id, name="CR-A2", dimensions={"centerDistance": 95}, pin="P2", ball_bearing="BB2",
        )
        assert u.sr_no == c.sr_no
        assert u.name == "CR-A2"
        assert u.dimensions["centerDistance"] == 95
        assert u.dimensions["smallEndDiameter"] is None

    def test_non_finite_dimension_dropped(self, db):
        c = conrod_service.create_conrod(
            db,
            name="CR-N",
            dimensions={"smallEndDiameter": float("nan"), "bigEndDiameter": 30.0, "centerDistance": float("inf")},
            pin="P1",
            ball_bearing="BB1",
        )
        assert c.dimensions == {"smallEndDiameter": None, "bigEndDiameter": 30.0, "centerDistance": None}

    def test_delete_unknown_is_acknowledged(self, db):
        assert conrod_service.delete_conrod(db, 999) == 999


class TestBatchImport:

    def test_large_batch_gets_unique_increasing_serials(self, db):
        rows = [
            {"name": f"CR-{i}", "dimensions": {}, "pin": "P1", "ball_bearing": "BB1"}
            for i in range(60)
        ]
        created, errors = conrod_service.import_conrods(db, rows)
        assert errors == []
        serials = [c.sr_no for c in created]
        assert serials == list(range(1, 61))

    def test_failed_row_reported_and_rest_imported(self, db):
        rows = [
            {"name": "A", "pin": "P", "ball_bearing": "B"},
            {"name": "", "pin": "P", "ball_bearing": "B"},
            {"name": "C", "pin": "P", "ball_bearing": "B"},
        ]
        created, errors = conrod_service.import_conrods(db, rows)
        assert [c.sr_no for c in created] == [1, 2]
        assert errors[0]["row"] == 2


CSV_OK = """Name, Small End Diameter, Big End Diameter, Center Distance, Pin, Ball Bearing
CR-1, 10, 30, 90, P1, BB1

CR-2, x, 32, 95, P2, BB2
CR-3, 10, 30
, 10, 30, 90, P1, BB1
"""


class TestCsvImport:

    def test_parse_rows_and_errors(self):
        rows, errors = conrod_service.parse_conrod_csv(CSV_OK)
        assert [r["name"] for r in rows] == ["CR-1", "CR-2"]
        assert rows[0]["dimensions"] == {"smallEndDiameter": 10.0, "bigEndDiameter": 30.0, "centerDistance": 90.0}
        assert rows[1]["dimensions"]["smallEndDiameter"] is None
        assert [e["row"] for e in errors] == [4, 5]

    def test_row_numbers_skip_blank_lines(self):
        # CR-3 sits on file line 5, after the blank line 3
        _, errors = conrod_service.parse_conrod_csv(CSV_OK)
        assert errors[0] == {"row": 4, "message": "Incorrect number of columns"}

    def test_non_finite_dimensions_become_null(self):
        text = "name,smallEndDiameter,bigEndDiameter,centerDistance,pin,ballBearing\nCR-9,nan,inf,-Infinity,P1,BB1\n"
        rows, errors = conrod_service.parse_conrod_csv(text)
        assert errors == []
        assert rows[0]["dimensions"] == {"smallEndDiameter": None, "bigEndDiameter": None, "centerDistance": None}

    def test_non_finite_csv_row_is_stored(self, db):
        text = "name,smallEndDiameter,bigEndDiameter,centerDistance,pin,ballBearing\nCR-9,NaN,32,95,P1,BB1\n"
        created, errors = conrod_service.import_conrods_csv(db, text)
        assert errors == []
        db.expire_all()
        stored = db.get(ConrodDefinition, created[0].id)
        assert stored.dimensions == {"smallEndDiameter": None, "bigEndDiameter": 32.0, "centerDistance": 95.0}

    def test_missing_column_fails_whole_import(self):
        with pytest.raises(ValidationFailed, match="ballbearing"):
            conrod_service.parse_conrod_csv("name,smallEndDiameter,bigEndDiameter,centerDistance,pin\nA,1,2,3,P\n")

    def test_header_only_fails(self):
        with pytest.raises(ValidationFailed):
            conrod_service.parse_conrod_csv("name,smallEndDiameter,bigEndDiameter,centerDistance,pin,ballBearing\n")

    def test_import_csv_creates_sequentially(self, db):
        created, errors = conrod_service.import_conrods_csv(db, CSV_OK)
        assert [(c.name, c.sr_no) for c in created] == [("CR-1", 1), ("CR-2", 2)]
        assert len(errors) == 2

"""
Row <-> object mapping on top of SQLAlchemy Core ``text()`` statements.

Two kinds of mapper live here:

* ``RecordMapper`` - one table, one dataclass (drugs, insurers,
  prescriptions, visits).
* ``HierarchyMapper`` - one table backing a base dataclass and its single
  extended variant (Doctor/Specialist, Patient/InsuredPatient).  The
  extension column is the discriminator: a row whose extension column is
  NULL is the base variant, anything else is the extended variant.
  ``encode`` and ``decode`` are the only places that translate between the
  variant and the flat row.

Every call opens its own connection and runs a single statement inside
``engine.begin()``; SQLAlchemy errors surface as ``StorageFailure``.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from clinicrecords.errors import StorageFailure, ValidationFailure
from clinicrecords.models import (
    Doctor, Drug, Insurance, InsuredPatient, Patient, Prescription, Specialist, Visit,
)


def _to_db(value):
    if isinstance(value, date):
        return value.isoformat()
    return value


def _to_date(value) -> Optional[date]:
    if value is None or (isinstance(value, date) and not isinstance(value, datetime)):
        return value
    if isinstance(value, datetime):
        return value.date()
    return date.fromisoformat(str(value)[:10])


class TableMapper:
    """Statement execution shared by all mappers."""

    table: str = ""
    # (column, attribute) pairs in declared column order, key columns first
    columns: Sequence[Tuple[str, str]] = ()
    key_columns: Sequence[str] = ()
    date_columns: Sequence[str] = ()
    order_by: Optional[str] = None

    def __init__(self, engine):
        self.engine = engine

    def _run(self, action: str, sql: str, params: Optional[Dict[str, Any]] = None,
             fetch: bool = False):
        try:
            with self.engine.begin() as conn:
                result = conn.execute(text(sql), params or {})
                if fetch:
                    return result.mappings().all()
                return result.rowcount
        except SQLAlchemyError as e:
            raise StorageFailure(f"Could not {action} {self.table}: {e}", e) from e

    def _key_params(self, key: Sequence[Any]) -> Dict[str, Any]:
        if len(key) != len(self.key_columns):
            raise TypeError(
                f"{self.table} is keyed by {', '.join(self.key_columns)}; got {len(key)} value(s)"
            )
        return {col: _to_db(val) for col, val in zip(self.key_columns, key)}

    def _where_key(self) -> str:
        return " AND ".join(f"{c} = :{c}" for c in self.key_columns)

    def _select_sql(self) -> str:
        sql = f"SELECT * FROM {self.table}"
        if self.order_by:
            sql += f" ORDER BY {self.order_by}"
        return sql

    def _attr_value(self, row, column: str):
        value = row[column]
        if column in self.date_columns:
            return _to_date(value)
        return value

    def _insert(self, columns: List[str], values: List[Any]) -> int:
        sql = (
            f"INSERT INTO {self.table} ({', '.join(columns)}) "
            f"VALUES ({', '.join(':' + c for c in columns)})"
        )
        return self._run("insert into", sql, dict(zip(columns, (_to_db(v) for v in values))))

    def _update(self, columns: List[str], values: List[Any],
                null_columns: Sequence[str] = ()) -> int:
        params = dict(zip(columns, (_to_db(v) for v in values)))
        assignments = [f"{c} = :{c}" for c in columns if c not in self.key_columns]
        assignments += [f"{c} = NULL" for c in null_columns]
        sql = f"UPDATE {self.table} SET {', '.join(assignments)} WHERE {self._where_key()}"
        return self._run("update", sql, params)

    def load_all(self) -> list:
        rows = self._run("read", self._select_sql(), fetch=True)
        return [self.decode(r) for r in rows]

    def load_by_id(self, *key):
        sql = f"SELECT * FROM {self.table} WHERE {self._where_key()}"
        rows = self._run("read", sql, self._key_params(key), fetch=True)
        return self.decode(rows[0]) if rows else None

    def delete(self, *key) -> int:
        sql = f"DELETE FROM {self.table} WHERE {self._where_key()}"
        return self._run("delete from", sql, self._key_params(key))

    def decode(self, row):
        raise NotImplementedError


class RecordMapper(TableMapper):
    """Mapper for a table holding a single dataclass."""

    entity_type: type = object

    def encode(self, entity) -> Tuple[List[str], List[Any]]:
        if not isinstance(entity, self.entity_type):
            raise TypeError(f"{self.table} mapper cannot encode {type(entity).__name__}")
        return [c for c, _ in self.columns], [getattr(entity, a) for _, a in self.columns]

    def decode(self, row):
        return self.entity_type(**{a: self._attr_value(row, c) for c, a in self.columns})

    def insert(self, entity) -> int:
        return self._insert(*self.encode(entity))

    def update(self, entity) -> int:
        return self._update(*self.encode(entity))


class HierarchyMapper(TableMapper):
    """Mapper for a base dataclass and its extended variant sharing one table."""

    base_type: type = object
    extended_type: type = object
    # (column, attribute) pairs only the extended variant carries;
    # the first one is the discriminator
    extension_columns: Sequence[Tuple[str, str]] = ()

    @property
    def discriminator(self) -> str:
        return self.extension_columns[0][0]

    def variant_columns(self, entity) -> Sequence[Tuple[str, str]]:
        """Column set written for *entity*, chosen by its exact type."""
        if type(entity) is self.extended_type:
            return list(self.columns) + list(self.extension_columns)
        if type(entity) is self.base_type:
            return list(self.columns)
        raise TypeError(f"{self.table} mapper cannot encode {type(entity).__name__}")

    def encode(self, entity) -> Tuple[List[str], List[Any]]:
        pairs = self.variant_columns(entity)
        names = [c for c, _ in pairs]
        values = [getattr(entity, a) for _, a in pairs]
        if self.discriminator in names and values[names.index(self.discriminator)] is None:
            raise ValidationFailure(
                f"{type(entity).__name__} requires a value for {self.discriminator}"
            )
        return names, values

    def decode(self, row):
        base = {a: self._attr_value(row, c) for c, a in self.columns}
        if row[self.discriminator] is None:
            return self.base_type(**base)
        extra = {a: self._attr_value(row, c) for c, a in self.extension_columns}
        return self.extended_type(**base, **extra)

    def insert(self, entity) -> int:
        return self._insert(*self.encode(entity))

    def update(self, entity) -> int:
        names, values = self.encode(entity)
        # a base variant must not keep a stale discriminator
        nulls = [c for c, _ in self.extension_columns if c not in names]
        return self._update(names, values, nulls)


# ── Hierarchies ──────────────────────────────────────────────────────

class DoctorMapper(HierarchyMapper):
    table = "doctor"
    key_columns = ("doctor_id",)
    columns = (
        ("doctor_id", "doctor_id"),
        ("first_name", "first_name"),
        ("surname", "surname"),
        ("address", "address"),
        ("email", "email"),
        ("hospital", "hospital"),
    )
    base_type = Doctor
    extended_type = Specialist
    extension_columns = (("specialization", "specialization"),)


class PatientMapper(HierarchyMapper):
    table = "patient"
    key_columns = ("patient_id",)
    columns = (
        ("patient_id", "patient_id"),
        ("first_name", "first_name"),
        ("surname", "surname"),
        ("postcode", "postcode"),
        ("address", "address"),
        ("phone", "phone"),
        ("email", "email"),
    )
    base_type = Patient
    extended_type = InsuredPatient
    extension_columns = (("insurance_id", "insurance_id"),)


# ── Single-table records ─────────────────────────────────────────────

class InsuranceMapper(RecordMapper):
    table = "insurance"
    key_columns = ("insurance_id",)
    columns = (
        ("insurance_id", "insurance_id"),
        ("company", "company"),
        ("address", "address"),
        ("phone", "phone"),
    )
    entity_type = Insurance


class DrugMapper(RecordMapper):
    table = "drug"
    key_columns = ("drug_id",)
    columns = (
        ("drug_id", "drug_id"),
        ("drug_name", "name"),
        ("side_effects", "side_effects"),
        ("benefits", "benefits"),
    )
    entity_type = Drug

    SEARCHABLE_COLUMNS = {"drug_name", "side_effects", "benefits"}

    def search(self, column: str, term: str) -> List[Drug]:
        """Drugs whose *column* contains *term* (SQL LIKE)."""
        if column not in self.SEARCHABLE_COLUMNS:
            raise ValueError(f"Cannot search drugs by '{column}'")
        sql = f"SELECT * FROM {self.table} WHERE {column} LIKE :term"
        rows = self._run("search", sql, {"term": f"%{term}%"}, fetch=True)
        return [self.decode(r) for r in rows]


class PrescriptionMapper(RecordMapper):
    table = "prescription"
    key_columns = ("prescription_id",)
    columns = (
        ("prescription_id", "prescription_id"),
        ("date_prescribed", "date_prescribed"),
        ("dosage", "dosage"),
        ("duration", "duration"),
        ("comment", "comment"),
        ("drug_id", "drug_id"),
        ("doctor_id", "doctor_id"),
        ("patient_id", "patient_id"),
    )
    date_columns = ("date_prescribed",)
    order_by = "date_prescribed DESC"
    entity_type = Prescription


class VisitMapper(RecordMapper):
    table = "visit"
    key_columns = ("patient_id", "doctor_id", "date_of_visit")
    columns = (
        ("patient_id", "patient_id"),
        ("doctor_id", "doctor_id"),
        ("date_of_visit", "date_of_visit"),
        ("symptoms", "symptoms"),
        ("diagnosis", "diagnosis"),
    )
    date_columns = ("date_of_visit",)
    entity_type = Visit

    def primary_doctor_id(self, patient_id: str) -> Optional[str]:
        """Doctor with the most visits for the patient; ties go to the first row returned."""
        sql = """
            SELECT doctor_id, COUNT(*) AS visit_count
            FROM visit
            WHERE patient_id = :patient_id
            GROUP BY doctor_id
            ORDER BY visit_count DESC
            LIMIT 1
        """
        rows = self._run("read", sql, {"patient_id": patient_id}, fetch=True)
        return rows[0]["doctor_id"] if rows else None

"""
Batch Ingestor — CSV upload → validated LeadRecords → best-effort bulk insert.

Rows are parsed in stream order. Malformed records (field count differs from
the header) are skipped and not counted; every other record counts toward
row_count and goes through the Record Validator. Accepted records go in as one
INSERT ... ON CONFLICT DO NOTHING on PostgreSQL and one SAVEPOINT each
elsewhere, so a duplicate email only drops that record.
"""
import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from leadscore.errors import StreamParseError, StorageTransactionError
from leadscore.models.lead import Lead
from leadscore.pipeline.base import LeadRecord, RowRejection
from leadscore.pipeline.validator import validate_row

logger = logging.getLogger('pipeline.ingest')

INSERTED = 'inserted'
DUPLICATE = 'duplicate'

# Rows per INSERT statement; keeps bound parameters under the PostgreSQL limit
INSERT_CHUNK_SIZE = 1000


@dataclass(frozen=True)
class InsertOutcome:
    email: str
    status: str  # INSERTED or DUPLICATE


@dataclass
class BulkInsertOutcome:
    """Per-record result of bulk_insert_leads()."""
    outcomes: List[InsertOutcome] = field(default_factory=list)

    @property
    def inserted_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status == INSERTED)

    @property
    def duplicate_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status == DUPLICATE)


@dataclass
class IngestResult:
    row_count: int = 0
    accepted_count: int = 0
    inserted_count: int = 0
    errors: List[RowRejection] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'totalRows': self.row_count,
            'inserted': self.inserted_count,
            'errors': len(self.errors),
            'errorDetails': [e.to_dict() for e in self.errors],
        }


def parse_csv(payload: bytes) -> Iterator[Dict[str, str]]:
    """
    Yield header-keyed rows from a CSV payload.

    Raises:
        StreamParseError: the payload is not UTF-8 or the parser itself fails.
    """
    try:
        text = payload.decode('utf-8-sig')
    except UnicodeDecodeError as e:
        raise StreamParseError('Error parsing CSV file: payload is not valid UTF-8') from e

    reader = csv.reader(io.StringIO(text, newline=''), delimiter=',')
    header = None
    try:
        for values in reader:
            if not values:
                continue
            if header is None:
                header = [v.strip() for v in values]
                continue
            if len(values) != len(header):
                logger.warning(
                    "Skipping malformed CSV record on line %d: expected %d fields, got %d",
                    reader.line_num, len(header), len(values),
                )
                continue
            yield dict(zip(header, (v.strip() for v in values)))
    except csv.Error as e:
        raise StreamParseError(f'Error parsing CSV file: {e}') from e


def build_bulk_insert(records: List[LeadRecord]):
    """One multi-row INSERT that skips email conflicts and returns the inserted emails."""
    return (
        pg_insert(Lead)
        .values([record.to_row() for record in records])
        .on_conflict_do_nothing(index_elements=['email'])
        .returning(Lead.email)
    )


def outcomes_from_inserted(records: List[LeadRecord], inserted_emails) -> BulkInsertOutcome:
    """
    Map the emails a statement reported as inserted back onto the records.

    Each returned email marks its first record as inserted; any later record
    with the same email was skipped by the conflict clause.
    """
    remaining = set(inserted_emails)
    result = BulkInsertOutcome()
    for record in records:
        if record.email in remaining:
            remaining.discard(record.email)
            result.outcomes.append(InsertOutcome(record.email, INSERTED))
        else:
            logger.info("Skipping duplicate lead %s", record.email)
            result.outcomes.append(InsertOutcome(record.email, DUPLICATE))
    return result


def bulk_insert_leads(session, records: List[LeadRecord]) -> BulkInsertOutcome:
    """
    Insert records without letting one unique-email conflict abort the rest.

    PostgreSQL gets one INSERT ... ON CONFLICT DO NOTHING RETURNING per
    INSERT_CHUNK_SIZE records; other backends insert one SAVEPOINT per
    record. Does not commit; the caller owns the enclosing transaction.
    """
    if not records:
        return BulkInsertOutcome()

    if session.get_bind().dialect.name == 'postgresql':
        result = BulkInsertOutcome()
        for start in range(0, len(records), INSERT_CHUNK_SIZE):
            chunk = records[start:start + INSERT_CHUNK_SIZE]
            inserted = session.execute(build_bulk_insert(chunk)).scalars().all()
            result.outcomes.extend(outcomes_from_inserted(chunk, inserted).outcomes)
        return result

    result = BulkInsertOutcome()
    for record in records:
        try:
            with session.begin_nested():
                session.add(Lead(**record.to_row()))
        except IntegrityError:
            logger.info("Skipping duplicate lead %s", record.email)
            result.outcomes.append(InsertOutcome(record.email, DUPLICATE))
            continue
        result.outcomes.append(InsertOutcome(record.email, INSERTED))
    return result


def ingest_csv(session, payload: bytes) -> IngestResult:
    """Parse, validate and store a CSV upload. Commits the session on success."""
    result = IngestResult()
    accepted: List[LeadRecord] = []

    for position, row in enumerate(parse_csv(payload), 1):
        result.row_count += 1
        outcome = validate_row(row, position)
        if isinstance(outcome, RowRejection):
            result.errors.append(outcome)
        else:
            accepted.append(outcome)

    result.accepted_count = len(accepted)

    if accepted:
        try:
            inserted = bulk_insert_leads(session, accepted)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Failed to store %d uploaded leads", len(accepted), exc_info=True)
            raise StorageTransactionError('Failed to store uploaded leads') from e
        result.inserted_count = inserted.inserted_count

    logger.info(
        "Processed %d rows, inserted %d leads (%d rejected, %d duplicates)",
        result.row_count, result.inserted_count, len(result.errors),
        result.accepted_count - result.inserted_count,
    )
    return result

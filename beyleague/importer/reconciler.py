"""Turns parsed CSV rows into stored matches.

Each row is resolved against a ``ReferenceSnapshot`` and written on its own.
A row that cannot be resolved or written is recorded and the batch moves on;
nothing raised by a single row escapes ``import_rows``.
"""
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Set, Tuple

from loguru import logger
from pydantic import BaseModel

from beyleague.config.settings import settings
from beyleague.models.csv_row import CsvRow
from beyleague.models.enums import EventType, MatchFormat, RowOutcome, WinnerSide
from beyleague.models.match import Match, Score
from beyleague.services.match_writer import (
    Side,
    event_counts_from,
    parse_played_at,
    parse_score,
    save_match,
)
from beyleague.storage.base import BaseStore, StoreError

from .csv_parser import parse_batch_csv
from .reference import ReferenceSnapshot, load_reference_snapshot


class ResolvedRow(BaseModel):
    """A CSV row whose names have been turned into store identifiers."""

    external_id: str
    player_a_id: str
    player_b_id: str
    beyblade_a_id: str
    beyblade_b_id: str
    winner_player_id: str
    score_a: Score
    score_b: Score
    played_at: datetime
    event_counts: Dict[EventType, int]


class RowResult(BaseModel):
    row_id: str
    external_id: str
    outcome: RowOutcome
    message: Optional[str] = None
    match_id: Optional[str] = None


class ImportSummary(BaseModel):
    total_rows: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    warnings: List[str] = []
    error_messages: List[str] = []
    results: List[RowResult] = []

    def record(self, result: RowResult) -> None:
        self.results.append(result)
        if result.outcome == RowOutcome.CREATED:
            self.created += 1
        elif result.outcome == RowOutcome.UPDATED:
            self.updated += 1
        elif result.outcome == RowOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.errors += 1
            if result.message:
                self.error_messages.append(result.message)

    def render(self, limit: int = 10) -> str:
        """Plain-text summary listing at most ``limit`` warnings and errors."""
        lines = [
            "CSV Import Complete",
            f"Total rows: {self.total_rows}",
            f"Created: {self.created}",
            f"Updated: {self.updated}",
            f"Skipped (duplicates): {self.skipped}",
            f"Errors: {self.errors}",
        ]
        for title, messages in (("Warnings", self.warnings), ("Errors", self.error_messages)):
            if not messages:
                continue
            lines.append("")
            lines.append(f"{title}:")
            lines.extend(messages[:limit])
            if len(messages) > limit:
                lines.append(f"... and {len(messages) - limit} more")
        return "\n".join(lines)


def _label(row: CsvRow) -> str:
    return f"Row {row.row_id} ({row.match_id})"


def resolve_row(
    row: CsvRow, snapshot: ReferenceSnapshot, now: Optional[datetime] = None
) -> Tuple[Optional[ResolvedRow], List[str], List[str]]:
    """Resolves names to ids. Returns (resolved row or None, errors, warnings)."""
    errors: List[str] = []
    warnings: List[str] = []

    player_a = snapshot.find_player(row.player_a_name)
    player_b = snapshot.find_player(row.player_b_name)
    for name, player in ((row.player_a_name, player_a), (row.player_b_name, player_b)):
        if player is None:
            errors.append(f'{_label(row)}: Player "{name}" not found in database')
    if player_a is None or player_b is None:
        return None, errors, warnings
    if player_a.id == player_b.id:
        errors.append(f'{_label(row)}: Both sides are "{player_a.display_name}"')
        return None, errors, warnings

    owned = {}
    for side, player, bey_name in (
        ("a", player_a, row.player_a_bey),
        ("b", player_b, row.player_b_bey),
    ):
        entry = snapshot.find_owned_beyblade(player.id, bey_name)
        if entry is None:
            available = ", ".join(f'"{name}"' for name in snapshot.inventory_names(player.id))
            errors.append(
                f'{_label(row)}: Bey "{bey_name}" not found for {player.display_name}. '
                f"Available: {available or 'none'}"
            )
        else:
            owned[side] = entry.beyblade_id
    if errors:
        return None, errors, warnings

    score_a = parse_score(row.player_a_score)
    score_b = parse_score(row.player_b_score)
    if score_a is None or score_b is None:
        errors.append(f"{_label(row)}: Invalid scores")
        return None, errors, warnings

    played_at, valid_date = parse_played_at(row.date, now)
    if row.date and not valid_date:
        warnings.append(f'{_label(row)}: Date "{row.date}" not recognised, using current time')

    winner = player_a if row.winner == WinnerSide.A else player_b
    resolved = ResolvedRow(
        external_id=row.match_id,
        player_a_id=player_a.id,
        player_b_id=player_b.id,
        beyblade_a_id=owned["a"],
        beyblade_b_id=owned["b"],
        winner_player_id=winner.id,
        score_a=score_a,
        score_b=score_b,
        played_at=played_at,
        event_counts=event_counts_from(row.event_counts()),
    )
    return resolved, errors, warnings


async def persist_row(
    store: BaseStore, resolved: ResolvedRow, location: Optional[str] = None
) -> Tuple[str, bool]:
    match = Match(
        external_id=resolved.external_id,
        played_at=resolved.played_at,
        format=MatchFormat.BEST_OF,
        location=location,
        winner_player_id=resolved.winner_player_id,
    )
    sides = [
        Side(player_id=resolved.player_a_id, beyblade_id=resolved.beyblade_a_id, score=resolved.score_a),
        Side(player_id=resolved.player_b_id, beyblade_id=resolved.beyblade_b_id, score=resolved.score_b),
    ]
    return await save_match(store, match, sides, resolved.event_counts)


async def import_rows(
    rows: Sequence[CsvRow],
    snapshot: ReferenceSnapshot,
    store: BaseStore,
    location: Optional[str] = None,
    warnings: Sequence[str] = (),
) -> ImportSummary:
    """Imports rows one at a time, in order, and tallies the outcomes."""
    summary = ImportSummary(total_rows=len(rows), warnings=list(warnings))
    processed: Set[str] = set()

    for row in rows:
        if not row.match_id:
            summary.record(
                RowResult(
                    row_id=row.row_id,
                    external_id="",
                    outcome=RowOutcome.REJECTED,
                    message=f"Row {row.row_id}: Missing match_id",
                )
            )
            continue

        if row.match_id in processed:
            logger.debug(f"Skipping duplicate match id {row.match_id} ({row.row_id}).")
            summary.record(
                RowResult(row_id=row.row_id, external_id=row.match_id, outcome=RowOutcome.SKIPPED)
            )
            continue

        resolved, errors, row_warnings = resolve_row(row, snapshot)
        summary.warnings.extend(row_warnings)
        if resolved is None:
            summary.record(
                RowResult(
                    row_id=row.row_id,
                    external_id=row.match_id,
                    outcome=RowOutcome.REJECTED,
                    message="; ".join(errors),
                )
            )
            continue

        processed.add(row.match_id)
        try:
            match_id, updated = await persist_row(store, resolved, location)
        except StoreError as e:
            logger.warning(f"{_label(row)}: store write failed: {e}")
            summary.record(
                RowResult(
                    row_id=row.row_id,
                    external_id=row.match_id,
                    outcome=RowOutcome.FAILED,
                    message=f"{_label(row)}: {e}",
                )
            )
            continue

        summary.record(
            RowResult(
                row_id=row.row_id,
                external_id=row.match_id,
                outcome=RowOutcome.UPDATED if updated else RowOutcome.CREATED,
                match_id=match_id,
            )
        )

    logger.info(
        f"Import finished: {summary.created} created, {summary.updated} updated, "
        f"{summary.skipped} skipped, {summary.errors} errors."
    )
    return summary


async def run_batch_import(
    store: BaseStore,
    content: str,
    location: Optional[str] = None,
    unresolved_winner: Optional[WinnerSide] = None,
) -> ImportSummary:
    """Parses ``content``, snapshots reference data and imports every row."""
    parsed = parse_batch_csv(content, unresolved_winner or settings.unresolved_winner_side)
    if not parsed.rows:
        logger.warning("No valid rows found in the import file.")
        return ImportSummary(warnings=parsed.warnings)

    snapshot = await load_reference_snapshot(store)
    return await import_rows(
        parsed.rows,
        snapshot,
        store,
        location=location if location is not None else settings.default_location,
        warnings=parsed.warnings,
    )

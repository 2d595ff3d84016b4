import math
import re
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from loguru import logger
from pydantic import BaseModel

from beyleague.models.enums import EventType
from beyleague.models.match import Match, MatchEvent, MatchParticipant, Score
from beyleague.storage.base import BaseStore, Record, StoreError

MONTH_DAY_YEAR = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


class Side(BaseModel):
    """One participant of a match before it has been written."""

    player_id: str
    beyblade_id: str
    score: Score = 0


def parse_score(raw: str) -> Optional[Score]:
    """Parses a score cell; None when it is not a finite number."""
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return int(value) if value.is_integer() else value


def parse_event_count(raw: str) -> int:
    """Unreadable event counts count as zero."""
    try:
        return int(float(raw.strip()))
    except (ValueError, OverflowError):
        return 0


def parse_played_at(raw: str, now: Optional[datetime] = None) -> Tuple[datetime, bool]:
    """Returns the match time and whether ``raw`` held a usable date.

    ``M/D/YYYY`` is read as a local calendar date. Anything else goes through
    ISO-8601 parsing. Empty or invalid input yields the current time, and so
    does a date outside the representable range.

    An impossible calendar date such as ``2/30/2026`` is treated as invalid
    rather than rolled over into the following month.
    """
    now = now or datetime.now().astimezone()
    raw = raw.strip()
    if not raw:
        return now, False

    found = MONTH_DAY_YEAR.match(raw)
    if found:
        month, day, year = (int(part) for part in found.groups())
        try:
            return datetime(year, month, day).astimezone(), True
        except (ValueError, OverflowError):
            pass

    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).astimezone(), True
    except (ValueError, OverflowError):
        return now, False


def build_events(match_id: str, counts: Mapping[EventType, int]) -> List[MatchEvent]:
    """One event per type with a strictly positive count."""
    return [
        MatchEvent(match_id=match_id, event_type=event_type, count=count)
        for event_type, count in counts.items()
        if count > 0
    ]


async def _find_match(store: BaseStore, external_id: str) -> Optional[Record]:
    rows = await store.select("matches", filters={"external_id": external_id}, limit=1)
    return rows[0] if rows else None


class _PriorVersion(BaseModel):
    """Stored state of a match that is about to be overwritten."""

    match: Record
    participants: List[Record]
    events: List[Record]


async def _read_prior_version(store: BaseStore, match: Record) -> _PriorVersion:
    filters = {"match_id": match["id"]}
    return _PriorVersion(
        match=match,
        participants=await store.select("match_participants", filters=filters),
        events=await store.select("match_events", filters=filters),
    )


async def _clear_children(store: BaseStore, match_id: str) -> None:
    await store.delete("match_participants", {"match_id": match_id})
    await store.delete("match_events", {"match_id": match_id})


async def _cleanup(store: BaseStore, match_id: str, prior: Optional[_PriorVersion]) -> None:
    """Undoes a failed write of ``match_id``.

    A newly created match is removed. An existing one gets its previous
    fields, participants and events back.
    """
    try:
        await _clear_children(store, match_id)
        if prior is None:
            await store.delete("matches", {"id": match_id})
            return
        fields = {k: v for k, v in prior.match.items() if k != "id"}
        await store.update("matches", fields, {"id": match_id})
        if prior.participants:
            await store.insert("match_participants", prior.participants)
        if prior.events:
            await store.insert("match_events", prior.events)
    except StoreError as e:
        logger.error(f"Cleanup after failed write of match {match_id} also failed: {e}")


async def save_match(
    store: BaseStore,
    match: Match,
    sides: Sequence[Side],
    event_counts: Mapping[EventType, int],
) -> Tuple[str, bool]:
    """Writes a match with its participants and events.

    Matches with an external id are upserted on it; if one already existed,
    its participant and event rows are replaced rather than appended to.
    Returns the store id and whether an existing match was updated.

    A failure after the match row is written undoes this call before the
    StoreError propagates: a new match is removed and a replaced one is
    restored to its previous version.
    """
    prior = None
    if match.external_id:
        existing = await _find_match(store, match.external_id)
        if existing:
            prior = await _read_prior_version(store, existing)
        saved = await store.upsert("matches", match.to_record(), on_conflict="external_id")
    else:
        saved = (await store.insert("matches", [match.to_record()]))[0]
    match_id = saved["id"]

    try:
        if prior is not None:
            await _clear_children(store, match_id)

        participants = [
            MatchParticipant(
                match_id=match_id,
                player_id=side.player_id,
                beyblade_id=side.beyblade_id,
                score=side.score,
                is_winner=side.player_id == match.winner_player_id,
            )
            for side in sides
        ]
        await store.insert("match_participants", [p.to_record() for p in participants])

        events = build_events(match_id, event_counts)
        if events:
            await store.insert("match_events", [e.to_record() for e in events])
    except StoreError:
        await _cleanup(store, match_id, prior)
        raise

    return match_id, prior is not None


def event_counts_from(raw_counts: Mapping[EventType, str]) -> Dict[EventType, int]:
    return {event_type: parse_event_count(raw) for event_type, raw in raw_counts.items()}

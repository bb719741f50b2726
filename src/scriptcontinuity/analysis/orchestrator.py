"""Five-phase continuity analysis.

Phases run strictly one after another, each combining deterministic pattern
extraction with one or more calls to the generative service:

1. scene structure (chunked script)
2. characters
3. continuity events
4. story day timeline
5. appearance descriptions

A phase whose service call fails, or whose answer cannot be used, records
the error and continues with pattern-only data. ``analyze`` therefore
always returns a ``MasterContext`` of the same shape.
"""

from __future__ import annotations

import asyncio
from bisect import bisect_left
from collections.abc import Awaitable, Callable, Collection, Sequence
from typing import TYPE_CHECKING, Any

from scriptcontinuity.analysis.chunking import chunk_script
from scriptcontinuity.analysis.context import MasterContext
from scriptcontinuity.analysis.context_builder import build_master_context
from scriptcontinuity.analysis.prompts import (
    DESCRIPTION_CATEGORIES,
    build_character_prompt,
    build_continuity_prompt,
    build_description_prompt,
    build_scene_structure_prompt,
    build_timeline_prompt,
    summarize_scenes,
)
from scriptcontinuity.config import ContinuitySettings, get_logger, get_settings
from scriptcontinuity.exceptions import ConfigurationError, ValidationError
from scriptcontinuity.llm.client import GenerativeClient
from scriptcontinuity.models import (
    CharacterCandidate,
    CharacterCategory,
    Confidence,
    ContinuityEvent,
    DescriptionTag,
    EventType,
    PhaseResults,
    Scene,
    Timeline,
    TimelineBucket,
)
from scriptcontinuity.parser.entities import (
    categorize,
    compile_name_pattern,
    extract_character_candidates,
    find_character_appearances,
    normalize_character_name,
    recategorize,
)
from scriptcontinuity.parser.keywords import (
    detect_hmu_keywords_in_scenes,
    extract_event_candidates,
    make_event_id,
)
from scriptcontinuity.parser.scene_heading import normalize_setting
from scriptcontinuity.timeline.heuristic import build_heuristic_timeline
from scriptcontinuity.timeline.progression import attach_progressions
from scriptcontinuity.utils.lenient_json import parse_lenient
from scriptcontinuity.utils.merge import merge_by_key

if TYPE_CHECKING:
    from scriptcontinuity.storage import ContextCache

logger = get_logger(__name__)

ProgressCallback = Callable[[str, float], None]

PHASE_SCENES = "scenes"
PHASE_CHARACTERS = "characters"
PHASE_EVENTS = "continuity_events"
PHASE_TIMELINE = "timeline"
PHASE_DESCRIPTIONS = "descriptions"

CHARACTER_SUMMARY_CHARS = 500
CHARACTER_SUMMARY_LIMIT = 80_000
EVENT_SUMMARY_CHARS = 300
EVENT_SUMMARY_LIMIT = 50_000

# Keyword table category -> description category
KEYWORD_TAG_CATEGORIES = {
    "wounds": "injuries",
    "illness": "health",
    "grooming": "hair",
    "hair": "hair",
    "states": "stunts",
    "makeup": "makeup",
    "aging": "sfx",
    "tattoos": "makeup",
    "weather": "weather",
}


def _scene_position(value: Any, total: int) -> int | None:
    """Convert a 1-based scene number from an answer to a 0-based index."""
    if isinstance(value, bool):
        return None
    try:
        index = int(str(value).strip()) - 1
    except (TypeError, ValueError):
        return None
    return index if 0 <= index < total else None


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def scene_rows(parsed: Any) -> list[dict[str, Any]]:
    """Scene entries from a phase 1 answer (an array or ``{"scenes": [...]}``)."""
    if isinstance(parsed, dict):
        parsed = parsed.get("scenes")
    if not isinstance(parsed, list):
        raise ValidationError("Scene structure answer is not a list of scenes")
    return [row for row in parsed if isinstance(row, dict)]


def merge_scene_rows(
    scenes: Sequence[Scene],
    rows: Sequence[dict[str, Any]],
    start: int = 0,
    skip: Collection[int] = (),
) -> set[int]:
    """Copy synopsis and cast from one chunk's answer rows onto scenes.

    A row matches a scene by printed scene number, else by its position in
    ``rows`` counted from ``start``. Scenes in ``skip`` and scenes already
    matched by an earlier row are left alone. Heading-derived fields are only
    filled where the parser left them empty.

    Returns:
        Indices of the scenes that received data
    """
    by_number = {s.number.upper(): s for s in scenes if s.number}
    filled: set[int] = set()
    for position, row in enumerate(rows, start):
        key = _text(row.get("scene_number"))
        scene = by_number.get(key.upper()) if key else None
        if scene is None and position < len(scenes):
            scene = scenes[position]
        if scene is None or scene.index in filled or scene.index in skip:
            continue
        cast = [str(n).strip() for n in _as_list(row.get("characters_present"))]
        if cast:
            scene.characters_present = [n for n in cast if n]
        scene.synopsis = _text(row.get("synopsis")) or scene.synopsis
        if scene.location is None:
            scene.location = _text(row.get("location"))
        if scene.setting is None and _text(row.get("setting")):
            scene.setting = normalize_setting(str(row["setting"]))
        filled.add(scene.index)
    return filled


def chunk_first_scenes(
    script_text: str, chunks: Sequence[str], scenes: Sequence[Scene]
) -> list[int]:
    """0-based index of the first scene whose heading lies in each chunk."""
    offsets: list[int] = []
    cursor = 0
    for scene in scenes:
        found = script_text.find(scene.heading, cursor) if scene.heading else -1
        if found >= 0:
            cursor = found + len(scene.heading)
        offsets.append(found if found >= 0 else cursor)

    firsts: list[int] = []
    chunk_start = 0
    for chunk in chunks:
        firsts.append(bisect_left(offsets, chunk_start))
        chunk_start += len(chunk)
    return firsts


def characters_from_answer(
    parsed: Any, scenes: Sequence[Scene]
) -> list[CharacterCandidate]:
    """Character candidates from a phase 2 answer."""
    entries = parsed.get("characters") if isinstance(parsed, dict) else parsed
    if not isinstance(entries, list):
        raise ValidationError("Character answer has no 'characters' list")

    total = len(scenes)
    found: list[CharacterCandidate] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        raw_name = _text(entry.get("name"))
        canonical = normalize_character_name(raw_name or "")
        if not canonical:
            continue
        variations = [raw_name or canonical]
        for variation in _as_list(entry.get("name_variations")):
            text = _text(variation)
            if text and text not in variations:
                variations.append(text)

        indices = sorted(
            {
                i
                for i in (
                    _scene_position(v, total)
                    for v in _as_list(entry.get("scenes_appeared"))
                )
                if i is not None
            }
        )
        if not indices:
            mentions: set[int] = set()
            for variation in {canonical, *variations}:
                mentions.update(find_character_appearances(variation, scenes))
            indices = sorted(mentions)

        category = CharacterCategory.coerce(entry.get("category"))
        candidate = CharacterCandidate(
            canonical_name=canonical,
            name_variations=variations,
            scene_indices=indices,
            has_dialogue=category
            in (
                CharacterCategory.LEAD,
                CharacterCategory.SUPPORTING,
                CharacterCategory.DAY_PLAYER,
            ),
            gender=_text(entry.get("gender")),
            physical_description=_text(entry.get("physical_description")),
            arc=_text(entry.get("character_arc")),
            personality=_text(entry.get("personality")),
            visual_vibe=_text(entry.get("visual_vibe")),
            signature_look=_text(entry.get("signature_look")),
            relationships=[
                {"character": str(r["character"]), "type": str(r.get("type") or "")}
                for r in _as_list(entry.get("relationships"))
                if isinstance(r, dict) and r.get("character")
            ],
            source="service",
        )
        candidate.category = category or categorize(
            candidate.scene_count, total, candidate.has_dialogue
        )
        found.append(candidate)
    unique: dict[str, CharacterCandidate] = {}
    for candidate in found:
        unique.setdefault(candidate.canonical_name.lower(), candidate)
    return list(unique.values())


def reconcile_characters(
    service: list[CharacterCandidate],
    seeds: list[CharacterCandidate],
    total_scenes: int,
) -> list[CharacterCandidate]:
    """Service characters enriched by matching seeds, plus every missed seed.

    A matched seed adds its scenes to the service character, whose category
    is re-derived when that grows its scene count. Missed seeds keep the
    category derived from their scene counts.
    """
    alias: dict[str, str] = {}
    grown: list[CharacterCandidate] = []
    for seed in seeds:
        seed_names = [seed.canonical_name, *seed.name_variations]
        for candidate in service:
            if any(candidate.matches(n) for n in seed_names):
                alias[seed.canonical_name.lower()] = candidate.canonical_name.lower()
                candidate.has_dialogue = candidate.has_dialogue or seed.has_dialogue
                candidate.intro_description = (
                    candidate.intro_description or seed.intro_description
                )
                for variation in seed.name_variations:
                    if not candidate.matches(variation):
                        candidate.name_variations.append(variation)
                before = candidate.scene_count
                candidate.scene_indices = sorted(
                    {*candidate.scene_indices, *seed.scene_indices}
                )
                if candidate.scene_count != before:
                    grown.append(candidate)
                break

    recategorize(grown, total_scenes)

    merged = merge_by_key(
        service,
        seeds,
        key_fn=lambda c: alias.get(c.canonical_name.lower(), c.canonical_name.lower()),
    )
    merged.sort(key=lambda c: (-c.scene_count, c.canonical_name))
    return merged


def events_from_answer(
    parsed: Any,
    total_scenes: int,
    characters: Sequence[CharacterCandidate],
) -> list[ContinuityEvent]:
    """Continuity events from a phase 3 answer."""
    entries = parsed.get("continuity_events") if isinstance(parsed, dict) else parsed
    if not isinstance(entries, list):
        raise ValidationError("Continuity answer has no 'continuity_events' list")

    events: list[ContinuityEvent] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        event_type = EventType.coerce(entry.get("event_type"))
        start = _scene_position(
            entry.get("start_scene") or entry.get("scene_number"), total_scenes
        )
        if event_type is None or start is None:
            continue
        end = _scene_position(entry.get("end_scene"), total_scenes)
        character = canonical_character(_text(entry.get("character")), characters)
        events.append(
            ContinuityEvent(
                id=make_event_id(start, event_type, character),
                type=event_type,
                start_scene=start,
                end_scene=end if end is None or end >= start else start,
                description=_text(entry.get("description")) or "",
                character=character,
                visual_effect=_text(entry.get("visual_effect")),
                source="service",
            )
        )
    return events


def canonical_character(
    name: str | None, characters: Sequence[CharacterCandidate]
) -> str | None:
    """Canonical name of the known character ``name`` refers to."""
    if not name:
        return None
    for candidate in characters:
        if candidate.matches(name):
            return candidate.canonical_name
    return normalize_character_name(name) or None


def timeline_from_answer(parsed: Any, total_scenes: int) -> Timeline:
    """Story day buckets from a phase 4 answer."""
    entries = parsed.get("timeline") if isinstance(parsed, dict) else parsed
    if not isinstance(entries, list):
        raise ValidationError("Timeline answer has no 'timeline' list")

    buckets: list[TimelineBucket] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        try:
            story_day = int(entry.get("story_day"))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            continue
        positions = (
            _scene_position(v, total_scenes) for v in _as_list(entry.get("scenes"))
        )
        indices = [i for i in positions if i is not None]
        if not indices:
            continue
        try:
            confidence = Confidence(str(entry.get("confidence", "")).lower())
        except ValueError:
            confidence = Confidence.MEDIUM
        buckets.append(
            TimelineBucket(
                story_day=story_day,
                scenes=indices,
                confidence=confidence,
                reasoning=_text(entry.get("reasoning")) or "",
                time_span=_text(entry.get("time_span")) or "",
            )
        )
    if not buckets:
        raise ValidationError("Timeline answer contains no usable buckets")

    total_days = len({b.story_day for b in buckets})
    if isinstance(parsed, dict):
        try:
            total_days = int(parsed.get("total_story_days") or total_days)
        except (TypeError, ValueError):
            pass
    ambiguous = parsed.get("ambiguous_ranges") if isinstance(parsed, dict) else None
    return Timeline(
        buckets=buckets,
        total_story_days=total_days,
        ambiguous_ranges=_as_list(ambiguous),
        source="service",
    )


def tags_from_answer(
    parsed: Any,
    batch: Sequence[Scene],
    total_scenes: int,
    tracked: Sequence[CharacterCandidate],
) -> list[DescriptionTag]:
    """Description tags from a phase 5 answer for one batch of scenes."""
    entries = parsed.get("tags") if isinstance(parsed, dict) else parsed
    if not isinstance(entries, list):
        raise ValidationError("Description answer has no 'tags' list")

    batch_indices = {s.index for s in batch}
    tags: list[DescriptionTag] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        scene_index = _scene_position(entry.get("scene_number"), total_scenes)
        if scene_index is None and len(batch) == 1:
            scene_index = batch[0].index
        if scene_index not in batch_indices:
            continue
        category = str(entry.get("category") or "").strip().lower()
        text = _text(entry.get("text"))
        name = _text(entry.get("character"))
        character = next((c.canonical_name for c in tracked if c.matches(name)), None)
        if category not in DESCRIPTION_CATEGORIES or not text or character is None:
            continue
        confidence = str(entry.get("confidence") or "medium").lower()
        if confidence not in ("high", "medium", "low"):
            confidence = "medium"
        tags.append(
            DescriptionTag(
                character=character,
                scene_index=scene_index,
                category=category,
                text=text,
                confidence=confidence,
                source="service",
            )
        )
    return tags


def pattern_description_tags(
    scenes: Sequence[Scene], tracked: Sequence[CharacterCandidate]
) -> list[DescriptionTag]:
    """Keyword hits whose context window names a tracked character."""
    patterns = [
        (
            c.canonical_name,
            [compile_name_pattern(n) for n in {c.canonical_name, *c.name_variations}],
        )
        for c in tracked
    ]
    tags: list[DescriptionTag] = []
    for hit in detect_hmu_keywords_in_scenes(scenes):
        if hit.scene_index is None:
            continue
        for name, name_patterns in patterns:
            if any(p.search(hit.context) for p in name_patterns):
                tags.append(
                    DescriptionTag(
                        character=name,
                        scene_index=hit.scene_index,
                        category=KEYWORD_TAG_CATEGORIES.get(hit.category, hit.category),
                        text=hit.context,
                        confidence="low",
                        source="pattern",
                    )
                )
    return tags


def batch_scenes(scenes: Sequence[Scene], max_chars: int) -> list[list[Scene]]:
    """Consecutive scene groups whose text fits in ``max_chars``."""
    batches: list[list[Scene]] = []
    current: list[Scene] = []
    size = 0
    for scene in scenes:
        length = len(scene.text)
        if current and size + length > max_chars:
            batches.append(current)
            current, size = [], 0
        current.append(scene)
        size += length
    if current:
        batches.append(current)
    return batches


class ContinuityAnalyzer:
    """Runs the five analysis phases over one script.

    Without a client every phase runs pattern-only. ``cancel()`` stops all
    further service calls; the phases still complete with pattern data.
    """

    def __init__(
        self,
        client: GenerativeClient | None = None,
        settings: ContinuitySettings | None = None,
        cache: ContextCache | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        """Initialize the analyzer.

        Args:
            client: Service client; None for offline analysis
            settings: Chunking, delay and token budget settings
            cache: Context cache consulted before analysing
            sleep: Awaitable used for the inter-call delay
        """
        self.client = client
        self.settings = settings or get_settings()
        self.cache = cache
        self._sleep = sleep or asyncio.sleep
        self._cancelled = False

    def cancel(self) -> None:
        """Stop issuing service calls; the running analysis finishes offline."""
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _service_ready(self) -> bool:
        return self.client is not None and not self._cancelled

    async def _ask(self, prompt: str, max_tokens: int) -> Any:
        if self.client is None:
            raise ConfigurationError(
                "No generative service client configured",
                hint="Set an endpoint and API key, or run offline",
            )
        text = await self.client.complete(prompt, max_tokens)
        return parse_lenient(text)

    def _skip_service(self, results: PhaseResults, phase: str) -> None:
        results.mark_degraded(phase)
        if self._cancelled:
            results.cancelled = True

    async def analyze(
        self,
        script_text: str,
        scenes: Sequence[Scene],
        on_progress: ProgressCallback | None = None,
        *,
        force: bool = False,
    ) -> MasterContext:
        """Analyse a script whose scenes were already split and sequenced.

        Args:
            script_text: Full screenplay text
            scenes: Scenes of ``script_text``, annotated in place
            on_progress: Called as ``(message, percent)`` at phase boundaries
            force: Ignore a cached context for this script

        Returns:
            The master context; degraded rather than raising on service failure

        Raises:
            ValidationError: If ``scenes`` holds something other than ``Scene``
        """
        scenes = list(scenes)
        bad = [type(s).__name__ for s in scenes if not isinstance(s, Scene)]
        if bad:
            raise ValidationError(
                "analyze() expects Scene objects",
                details={"unexpected_types": sorted(set(bad))},
            )

        def progress(message: str, percent: float) -> None:
            logger.info(message, percent=percent)
            if on_progress:
                on_progress(message, percent)

        if self.cache is not None and not force:
            cached = self.cache.load(script_text)
            if cached is not None:
                logger.info(
                    "Using cached master context", total_scenes=cached.total_scenes
                )
                progress("Loaded cached analysis", 100)
                return cached

        self._cancelled = False
        cache_key_text = script_text
        if len(script_text) > self.settings.max_script_length:
            logger.warning(
                "Script exceeds maximum length, truncating",
                length=len(script_text),
                max_length=self.settings.max_script_length,
            )
            script_text = script_text[: self.settings.max_script_length]

        logger.info(
            "Starting continuity analysis",
            script_length=len(script_text),
            scene_count=len(scenes),
            offline=self.client is None,
        )
        results = PhaseResults(scenes=scenes)

        progress("Phase 1/5: Extracting scene structure...", 10)
        await self._scene_structure(script_text, scenes, results)

        progress("Phase 2/5: Discovering and categorizing characters...", 30)
        await self._characters(script_text, scenes, results)

        progress("Phase 3/5: Extracting continuity events...", 50)
        await self._continuity_events(script_text, scenes, results)

        progress("Phase 4/5: Constructing story timeline...", 70)
        await self._timeline(scenes, results)

        progress("Phase 5/5: Extracting appearance descriptions...", 85)
        await self._descriptions(scenes, results)

        progress("Finalizing analysis...", 95)
        context = build_master_context(results, scenes)

        if self.cache is not None and not results.cancelled:
            self.cache.save(cache_key_text, context)
        logger.info(
            "Continuity analysis complete",
            characters=len(context.characters),
            events=len(context.continuity_events),
            story_days=context.story_structure.total_days,
            degraded_phases=results.degraded_phases,
        )
        progress("Analysis complete", 100)
        return context

    async def _scene_structure(
        self, script_text: str, scenes: list[Scene], results: PhaseResults
    ) -> None:
        chunks = chunk_script(
            script_text,
            self.settings.chunk_size,
            self.settings.chunk_lookback,
            self.settings.chunk_lookahead,
        )
        firsts = chunk_first_scenes(script_text, chunks, scenes)
        filled: set[int] = set()
        for i, chunk in enumerate(chunks):
            if not self._service_ready():
                self._skip_service(results, PHASE_SCENES)
                break
            if i > 0:
                await self._sleep(self.settings.inter_call_delay)
            prompt = build_scene_structure_prompt(
                chunk, i, len(chunks), first_scene=firsts[i] + 1
            )
            try:
                parsed = await self._ask(prompt, self.settings.max_tokens_scenes)
                rows = scene_rows(parsed)
            except Exception as e:
                logger.warning(
                    "Scene structure extraction failed for chunk",
                    chunk=i + 1,
                    total_chunks=len(chunks),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                results.record_failure(PHASE_SCENES, e)
                continue
            filled |= merge_scene_rows(scenes, rows, start=firsts[i], skip=filled)

        logger.info("Phase 1 complete", chunks=len(chunks), scenes_updated=len(filled))

    async def _characters(
        self, script_text: str, scenes: list[Scene], results: PhaseResults
    ) -> None:
        seeds = extract_character_candidates(script_text, scenes)
        logger.debug("Pattern character candidates", count=len(seeds))

        if not self._service_ready():
            self._skip_service(results, PHASE_CHARACTERS)
            results.characters = seeds
            return

        prompt = build_character_prompt(
            summarize_scenes(scenes, CHARACTER_SUMMARY_CHARS, CHARACTER_SUMMARY_LIMIT),
            [c.canonical_name for c in seeds],
            len(scenes),
        )
        try:
            parsed = await self._ask(prompt, self.settings.max_tokens_characters)
            service = characters_from_answer(parsed, scenes)
        except Exception as e:
            logger.warning(
                "Character analysis failed, using pattern candidates",
                error=str(e),
                error_type=type(e).__name__,
            )
            results.record_failure(PHASE_CHARACTERS, e)
            results.characters = seeds
            return

        results.characters = reconcile_characters(service, seeds, len(scenes))
        logger.info(
            "Phase 2 complete",
            characters=len(results.characters),
            from_service=len(service),
        )

    async def _continuity_events(
        self, script_text: str, scenes: list[Scene], results: PhaseResults
    ) -> None:
        names = sorted(
            {
                n
                for c in results.characters
                for n in [c.canonical_name, *c.name_variations]
            }
        )
        pattern_events = extract_event_candidates(script_text, names)
        for event in pattern_events:
            event.character = canonical_character(event.character, results.characters)

        service_events: list[ContinuityEvent] = []
        if self._service_ready():
            prompt = build_continuity_prompt(
                summarize_scenes(scenes, EVENT_SUMMARY_CHARS, EVENT_SUMMARY_LIMIT),
                [c.canonical_name for c in results.characters],
            )
            try:
                parsed = await self._ask(prompt, self.settings.max_tokens_continuity)
                service_events = events_from_answer(
                    parsed, len(scenes), results.characters
                )
            except Exception as e:
                logger.warning(
                    "Continuity extraction failed, using pattern events",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                results.record_failure(PHASE_EVENTS, e)
        else:
            self._skip_service(results, PHASE_EVENTS)

        merged = merge_by_key(
            service_events,
            pattern_events,
            key_fn=lambda e: (e.start_scene, e.type),
        )
        merged.sort(key=lambda e: e.start_scene)
        results.events = attach_progressions(merged, len(scenes))
        logger.info(
            "Phase 3 complete",
            events=len(results.events),
            from_service=len(service_events),
        )

    async def _timeline(self, scenes: list[Scene], results: PhaseResults) -> None:
        if self._service_ready():
            try:
                parsed = await self._ask(
                    build_timeline_prompt(scenes), self.settings.max_tokens_timeline
                )
                results.timeline = timeline_from_answer(parsed, len(scenes))
                logger.info(
                    "Phase 4 complete",
                    story_days=results.timeline.total_story_days,
                )
                return
            except Exception as e:
                logger.warning(
                    "Timeline construction failed, using heuristic timeline",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                results.record_failure(PHASE_TIMELINE, e)
        else:
            self._skip_service(results, PHASE_TIMELINE)

        results.timeline = build_heuristic_timeline(scenes)

    async def _descriptions(self, scenes: list[Scene], results: PhaseResults) -> None:
        tracked = [
            c
            for c in results.characters
            if c.category is not CharacterCategory.BACKGROUND
        ] or list(results.characters)
        pattern_tags = pattern_description_tags(scenes, tracked)

        service_tags: list[DescriptionTag] = []
        names = [c.canonical_name for c in tracked]
        batches = batch_scenes(scenes, self.settings.chunk_size) if tracked else []
        for i, batch in enumerate(batches):
            if not self._service_ready():
                self._skip_service(results, PHASE_DESCRIPTIONS)
                break
            if i > 0:
                await self._sleep(self.settings.inter_call_delay)
            prompt = build_description_prompt(
                summarize_scenes(
                    batch, self.settings.chunk_size, 2 * self.settings.chunk_size
                ),
                names,
            )
            try:
                parsed = await self._ask(prompt, self.settings.max_tokens_descriptions)
                service_tags.extend(
                    tags_from_answer(parsed, batch, len(scenes), tracked)
                )
            except Exception as e:
                logger.warning(
                    "Description extraction failed for batch",
                    batch=i + 1,
                    total_batches=len(batches),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                results.record_failure(PHASE_DESCRIPTIONS, e)

        results.descriptions = merge_by_key(
            service_tags,
            pattern_tags,
            key_fn=lambda t: (t.character.lower(), t.scene_index, t.category),
        )
        logger.info(
            "Phase 5 complete",
            tags=len(results.descriptions),
            from_service=len(service_tags),
        )

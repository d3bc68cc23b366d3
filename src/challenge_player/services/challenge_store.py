"""Service holding the challenge catalog and its progress fields."""

import asyncio
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from challenge_player.core.catalog import default_catalog
from challenge_player.core.exceptions import StorageError
from challenge_player.core.interfaces import IChallengeStorage
from challenge_player.core.models import Track
from challenge_player.utils.log import get_logger

logger = get_logger(__name__)

CatalogListener = Callable[[Tuple[Track, ...]], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChallengeStore:
    """
    Persisted container for the challenge catalog.

    Responsibilities:
    - Apply progress and completion mutations
    - Enforce exactly-once completion per challenge id
    - Write every mutation through to the storage collaborator (off the
      event loop when one is running, coalescing bursts of mutations)
    - Notify observers of catalog changes
    """

    def __init__(
        self,
        storage: IChallengeStorage,
        key: str = "music-store",
        defaults: Optional[Iterable[Track]] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize challenge store.

        Args:
            storage: Key-value storage collaborator.
            key: Key the catalog document is stored under.
            defaults: Catalog used when nothing is persisted (built-in default if None).
            clock: Source of completion timestamps.
        """
        self._storage = storage
        self._key = key
        self._defaults: Tuple[Track, ...] = (
            tuple(defaults) if defaults is not None else default_catalog()
        )
        self._clock = clock
        self._challenges: Tuple[Track, ...] = self._defaults
        self._listeners: List[CatalogListener] = []
        self._dirty = False
        self._flush_task: Optional[asyncio.Task] = None

    @property
    def challenges(self) -> Tuple[Track, ...]:
        """Current catalog, in persisted order."""
        return self._challenges

    def get(self, challenge_id: str) -> Optional[Track]:
        """Find a challenge by id, or None."""
        for challenge in self._challenges:
            if challenge.id == challenge_id:
                return challenge
        return None

    def restore(self) -> None:
        """
        Load the catalog from storage.

        Falls back to the default catalog when the persisted list is empty,
        absent or unreadable. Live playback state is never persisted.
        """
        try:
            document = self._storage.load(self._key)
        except StorageError as e:
            logger.error(f"Could not read persisted catalog: {e}")
            document = None

        records = (document or {}).get("challenges") or []
        restored: List[Track] = []
        for record in records:
            try:
                restored.append(Track.from_record(record))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed challenge record {record!r}: {e}")

        if restored:
            self._challenges = tuple(restored)
            logger.info(f"Restored {len(restored)} challenges")
        else:
            self._challenges = self._defaults
            logger.info("No persisted challenges, using default catalog")
        self._notify()

    def reset_catalog(self) -> None:
        """Replace the catalog with the defaults and persist it."""
        self._commit(self._defaults)

    def update_progress(self, challenge_id: str, progress: float) -> None:
        """
        Store the latest progress for a challenge.

        Values above 100 are capped; values below 0 are stored as given.
        Unknown ids are ignored.
        """
        index = self._index_of(challenge_id)
        if index is None:
            logger.debug(f"update_progress: challenge {challenge_id} not found")
            return
        updated = replace(self._challenges[index], progress=min(progress, 100))
        self._replace_at(index, updated)

    def mark_complete(self, challenge_id: str) -> bool:
        """
        Mark a challenge completed.

        Returns:
            True if the challenge transitioned to completed, False if it was
            already completed or is unknown.
        """
        index = self._index_of(challenge_id)
        if index is None:
            logger.debug(f"mark_complete: challenge {challenge_id} not found")
            return False
        challenge = self._challenges[index]
        if challenge.completed:
            logger.debug(f"mark_complete: challenge {challenge_id} already completed")
            return False
        updated = replace(
            challenge, completed=True, progress=100.0, completed_at=self._clock()
        )
        self._replace_at(index, updated)
        logger.info(f"Challenge {challenge_id} completed")
        return True

    async def flush(self) -> None:
        """Wait until every queued write has reached storage."""
        task = self._flush_task
        if task is not None and not task.done():
            await task

    def subscribe(self, listener: CatalogListener) -> Callable[[], None]:
        """Register a catalog listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _index_of(self, challenge_id: str) -> Optional[int]:
        for index, challenge in enumerate(self._challenges):
            if challenge.id == challenge_id:
                return index
        return None

    def _replace_at(self, index: int, challenge: Track) -> None:
        challenges = list(self._challenges)
        challenges[index] = challenge
        self._commit(tuple(challenges))

    def _commit(self, challenges: Tuple[Track, ...]) -> None:
        self._challenges = challenges
        self._notify()
        self._persist()

    def _document(self) -> Dict[str, Any]:
        return {"challenges": [c.to_record() for c in self._challenges]}

    def _persist(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop: write synchronously
            try:
                self._storage.save(self._key, self._document())
            except StorageError as e:
                logger.error(f"Could not persist catalog: {e}")
            return

        self._dirty = True
        if self._flush_task is None or self._flush_task.done():
            self._flush_task = loop.create_task(self._flush_pending())

    async def _flush_pending(self) -> None:
        # Mutations made while a write is in flight collapse into one more write
        while self._dirty:
            self._dirty = False
            document = self._document()
            try:
                await asyncio.to_thread(self._storage.save, self._key, document)
            except StorageError as e:
                logger.error(f"Could not persist catalog: {e}")

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._challenges)
            except Exception as e:
                logger.warning(f"Catalog listener failed: {e}")

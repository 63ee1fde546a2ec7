"""Shuffled playback sequence for the 2x2 video wall."""

import random
from collections.abc import Sequence

from stash_playlists.models import PlaylistEntry, WallState

QUADRANTS = 4


class WallSequencer:
    """
    Deal playlist items onto four quadrants from a shuffled queue.

    When a quadrant finishes, it takes the next queued item; the queue
    wraps around once exhausted.
    """

    def __init__(self, items: Sequence[PlaylistEntry], rng: random.Random | None = None):
        if len(items) < QUADRANTS:
            raise ValueError(f"The video wall needs at least {QUADRANTS} items")
        self.rng = rng or random.Random()
        self.queue = list(items)
        self.rng.shuffle(self.queue)
        self.quadrants = self.queue[:QUADRANTS]
        self.next_index = QUADRANTS

    def advance(self, quadrant: int) -> PlaylistEntry:
        if not 0 <= quadrant < QUADRANTS:
            raise ValueError(f"quadrant must be between 0 and {QUADRANTS - 1}")
        item = self.queue[self.next_index % len(self.queue)]
        self.next_index += 1
        self.quadrants[quadrant] = item
        return item

    def set_rating(self, item_id: str, rating: int | None) -> None:
        def rated(entry: PlaylistEntry) -> PlaylistEntry:
            if entry.id != item_id:
                return entry
            return entry.model_copy(update={"rating": rating})

        self.queue = [rated(e) for e in self.queue]
        self.quadrants = [rated(e) for e in self.quadrants]

    def state(self, playlist_id: str) -> WallState:
        return WallState(
            playlist_id=playlist_id,
            quadrants=list(self.quadrants),
            queue=list(self.queue),
            next_index=self.next_index,
        )

"""Playback navigation: next, prev, jump and restart over the playlist."""

from collections.abc import Callable

from .playlist import PlaylistStore
from .typewriter import TypewriterAnimator


class NavigationController:
    """Moves the current index and asks for a re-render after every move.

    Index bounds and the high-water mark are enforced by the store; every
    method here returns whether the position actually changed.
    """

    def __init__(
        self,
        store: PlaylistStore,
        *,
        render: Callable[[], None],
        reset_background: Callable[[], None] | None = None,
    ) -> None:
        self.store = store
        self._render = render
        self._reset_background = reset_background

    def _move(self, index: int) -> bool:
        self.store.current_index = index
        self._render()
        return True

    def next(self) -> bool:
        if self.store.current_index < self.store.last_index:
            return self._move(self.store.current_index + 1)
        return False

    def prev(self) -> bool:
        if self.store.current_index > 0:
            return self._move(self.store.current_index - 1)
        return False

    def jump_to(self, index: int) -> bool:
        """Jump to `index`; out-of-range targets are ignored."""
        if 0 <= index <= self.store.last_index:
            return self._move(index)
        return False

    def restart(self) -> bool:
        """Back to the first frame with the session's default background."""
        self.store.current_index = 0
        if self._reset_background:
            self._reset_background()
        self._render()
        return True

    def advance(self, animator: TypewriterAnimator) -> bool:
        """Click behaviour: finish the running reveal, otherwise go to the next frame."""
        if animator.skip():
            return True
        return self.next()

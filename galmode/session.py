"""Game flow: one viewing session over a host conversation.

Session flow:
  1. load()        — fetch character + transcript, build history frames message
                     by message (each message inherits the previous message's
                     last background), then start a PlaylistStore from the
                     pending startup message (restored snapshot / new game) or
                     the auto-saved position.
  2. Navigation    — advance/next/prev/jump_to/restart re-render the current
                     frame and restart the typewriter on it.
  3. Generation    — on_generation_start freezes the playlist as history;
                     token deltas feed the reconciler; on_generation_end /
                     on_generation_stopped run the authoritative final pass.
                     poll_generation is the fallback when the host cannot push.
  4. End of story  — when the last frame is fully revealed and nothing is
                     streaming, detected choices (or a plain continue) are
                     offered through the renderer.

Components never share module-level state: the store is owned here and
handed to the reconciler and navigation controller on every (re)load.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from pydantic import BaseModel, ConfigDict, Field

from galmode import storage
from galmode.frames import (
    build_frames,
    detect_choices,
    is_thinking_phase,
    message_tree,
    tokenize,
)
from galmode.models import CharacterInfo, Choice, Frame, PlaylistSnapshot, TranscriptMessage
from galmode.playback import (
    FallbackPoller,
    NavigationController,
    PlaylistStore,
    ReconcileResult,
    RevealState,
    Scheduler,
    StartupChannel,
    StartupMessage,
    StreamReconciler,
    TypewriterAnimator,
)
from galmode.render import DEFAULT_PALETTE, FrameView, Renderer, SpeakerPalette
from galmode.source import ContentSource, SourceError

logger = logging.getLogger(__name__)

# 1x1 transparent GIF; used when neither the character nor the config supply a background
DEFAULT_PLACEHOLDER_BACKGROUND = (
    "data:image/gif;base64,R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7"
)
USER_SPEAKER = "You"


class PlayerSettings(BaseModel):
    """Playback settings, read from the stored config."""

    model_config = ConfigDict(extra="ignore")

    typewriter_enabled: bool = True
    typewriter_speed: float = 50
    refresh_interval_ms: float = 16
    poll_interval_ms: float = 500
    max_idle_polls: int = 5
    max_polls: int = 600
    placeholder_background: str = ""
    speaker_palette: list[str] = Field(default_factory=lambda: list(DEFAULT_PALETTE))

    @classmethod
    def from_config(cls, config: dict) -> PlayerSettings:
        return cls.model_validate(config)


class GameSession:
    """Owns the playlist and wires parsing, streaming, typewriter and navigation.

    Args:
        source:    Host conversation (transcript reads, player input).
        renderer:  Receives frame views and revealed text.
        scheduler: Drives typewriter ticks and coalesced reconciliation.
        settings:  Playback settings; defaults when omitted.
        startup:   Channel the bootstrap step uses to hand over a restored
                   snapshot or a new-game request.
        autosave:  Store the current index after every move.
    """

    def __init__(
        self,
        source: ContentSource,
        renderer: Renderer,
        scheduler: Scheduler,
        *,
        settings: PlayerSettings | None = None,
        startup: StartupChannel | None = None,
        autosave: bool = True,
    ) -> None:
        self.source = source
        self.renderer = renderer
        self.scheduler = scheduler
        self.settings = settings or PlayerSettings()
        self.startup = startup or StartupChannel()
        self.autosave = autosave
        self.palette = SpeakerPalette(self.settings.speaker_palette)
        self.character = CharacterInfo()
        self.transcript: list[TranscriptMessage] = []
        self.pending_generation = False
        self.end_reached = False
        self.choices: list[Choice] = []
        self._displayed_index: int | None = None
        self._warned_background = False
        self.animator = TypewriterAnimator(
            scheduler,
            enabled=self.settings.typewriter_enabled,
            speed_ms=self.settings.typewriter_speed,
            on_reveal=self._on_reveal,
            on_complete=self._on_reveal_complete,
        )
        self._attach(PlaylistStore(placeholder_background=self.default_background))

    # ── Wiring ───────────────────────────────────────────

    def _attach(self, store: PlaylistStore) -> None:
        self.store = store
        self.reconciler = StreamReconciler(
            store,
            self.scheduler,
            speaker_name=self.character.name,
            default_background=self.default_background,
            refresh_interval_ms=self.settings.refresh_interval_ms,
            on_change=self._on_reconciled,
        )
        self.navigation = NavigationController(
            store,
            render=self.render_current,
            reset_background=self._reset_background,
        )

    def _teardown(self) -> None:
        self.animator.stop()
        self.reconciler.close()
        self.pending_generation = False

    def apply_settings(self, settings: PlayerSettings) -> None:
        """Take new settings; they apply from the next reveal or pass on."""
        self.settings = settings
        self.palette = SpeakerPalette(settings.speaker_palette)
        self.animator.enabled = settings.typewriter_enabled
        self.animator.speed_ms = settings.typewriter_speed
        self.reconciler.refresh_interval_ms = settings.refresh_interval_ms

    @property
    def default_background(self) -> str:
        """The character avatar, else the configured placeholder (reported once)."""
        if self.character.avatar:
            return self.character.avatar
        if not self._warned_background:
            logger.warning("No character avatar; using placeholder background")
            self._warned_background = True
        return self.settings.placeholder_background or DEFAULT_PLACEHOLDER_BACKGROUND

    # ── Loading ──────────────────────────────────────────

    def build_history(self, transcript: list[TranscriptMessage]) -> list[Frame]:
        """Parse every message into frames, chaining backgrounds across messages."""
        frames: list[Frame] = []
        last_background = self.default_background
        for index, message in enumerate(transcript):
            speaker = message.speaker_name or (USER_SPEAKER if message.is_user else self.character.name)
            attachment = message.attachments[0] if message.attachments else None
            tokens = tokenize(message_tree(message.raw_content))
            message_frames = build_frames(
                tokens,
                initial_background=last_background,
                default_speaker=speaker,
                is_user=message.is_user,
                attachment=attachment,
                message_index=index,
            )
            if message_frames:
                frames.extend(message_frames)
                last_background = message_frames[-1].background or last_background
            else:
                first_image = attachment or next((t.value for t in tokens if t.kind == "image"), None)
                if first_image:
                    last_background = first_image
        return frames

    async def load(self, new_game: bool = False) -> None:
        """(Re)build the playlist from the host transcript.

        A pending startup message decides the starting position; otherwise the
        auto-saved index, otherwise the last frame. `new_game` always starts at 0.
        """
        self._teardown()
        try:
            self.character = await self.source.get_character()
            self.transcript = await self.source.get_transcript()
        except SourceError as e:
            logger.warning(f"Content source unavailable, showing placeholder: {e}")
            self.transcript = []
        self._warned_background = False

        frames = self.build_history(self.transcript)
        startup = self.startup.receive()
        if new_game:
            startup = StartupMessage(new_game=True)
        elif startup is None:
            saved = storage.load_auto_progress(self.character.name)
            if saved is not None:
                startup = StartupMessage(resume_index=saved)

        self._attach(PlaylistStore(
            frames,
            placeholder_background=self.default_background,
            startup=startup,
        ))
        logger.info(
            f"Loaded {len(self.transcript)} messages into {len(self.store)} frames, "
            f"index={self.store.current_index}"
        )
        self.render_current()

    # ── Rendering ────────────────────────────────────────

    def _current_text(self) -> str:
        return self.store.current_frame().text

    def view(self) -> FrameView:
        frame = self.store.current_frame()
        showing = self._displayed_index == self.store.current_index
        buffer = self.reconciler.session.buffer_text if self.reconciler.active else ""
        return FrameView(
            index=self.store.current_index,
            total=len(self.store),
            speaker_name=frame.speaker_name,
            speaker_color=self.palette.color_for(frame.speaker_name, frame.is_user),
            is_user=frame.is_user,
            background=frame.background,
            text=self.animator.visible_text if showing else "",
            full_text=frame.text,
            revealing=showing and self.animator.revealing,
            streaming=self.reconciler.active,
            loading=self.pending_generation and is_thinking_phase(buffer),
            more_available=self.store.state.more_available,
            end_reached=self.end_reached,
            choices=list(self.choices),
        )

    def render_current(self) -> None:
        """Draw the current frame and start revealing its text."""
        self.end_reached = False
        self.choices = []
        self.animator.stop()
        # frame first with nothing revealed, then the typewriter takes over
        self._displayed_index = None
        self.renderer.render_frame(self.view())
        self._displayed_index = self.store.current_index
        self.animator.start(self._current_text)
        if self.autosave:
            storage.save_auto_progress(self.character.name, self.store.current_index)

    def _refresh(self) -> None:
        """Re-send the view without touching the typewriter."""
        self.renderer.render_frame(self.view())

    def _reset_background(self) -> None:
        self.renderer.set_background(self.default_background)

    def _on_reveal(self, text: str) -> None:
        self.renderer.update_text(text)

    def _on_reveal_complete(self) -> None:
        if self.store.at_end and not self.reconciler.active:
            self._signal_end()

    def _signal_end(self) -> None:
        self.end_reached = True
        self.choices = detect_choices(self.store.current_frame().text)
        self.renderer.show_end(self.choices)

    def _on_reconciled(self, result: ReconcileResult) -> None:
        if self.store.current_index != self._displayed_index:
            self.render_current()
            return
        if self.animator.state is RevealState.COMPLETE:
            # already fully shown; show growth directly instead of replaying
            self.renderer.update_text(self._current_text())
        self._refresh()
        if result.final and self.animator.state is RevealState.COMPLETE:
            self._on_reveal_complete()

    # ── User actions ─────────────────────────────────────

    def advance(self) -> bool:
        return self.navigation.advance(self.animator)

    def next(self) -> bool:
        return self.navigation.next()

    def prev(self) -> bool:
        return self.navigation.prev()

    def jump_to(self, index: int) -> bool:
        return self.navigation.jump_to(index)

    def restart(self) -> bool:
        return self.navigation.restart()

    def skip(self) -> bool:
        return self.animator.skip()

    async def continue_story(self) -> None:
        """Ask the host for the next reply and start streaming it."""
        self.end_reached = False
        expected = len(self.transcript)
        await self.source.send_message("")
        self.on_generation_start(expected)

    async def select_choice(self, choice: Choice) -> None:
        """Send a choice as player input; the reply streams after it."""
        self.end_reached = False
        await self.source.send_message(choice.text)
        try:
            self.transcript = await self.source.get_transcript()
        except SourceError as e:
            logger.warning(f"Could not refresh transcript after choice: {e}")
        else:
            # history now includes the player's message
            self.store.replace_all(self.build_history(self.transcript))
        self.on_generation_start(len(self.transcript))

    # ── Generation events ────────────────────────────────

    def on_generation_start(self, message_index: int | None = None) -> None:
        if message_index is None:
            message_index = len(self.transcript)
        if self.reconciler.active and self.reconciler.session.message_index == message_index:
            return
        boundary = 0 if self.store.is_placeholder else len(self.store)
        self.pending_generation = True
        self.end_reached = False
        self.choices = []
        self.reconciler.start(boundary, message_index)
        self._refresh()

    def on_token_received(self, delta: str) -> None:
        if not self.reconciler.active:
            logger.debug("Token outside a streaming session ignored")
            return
        self.reconciler.on_token(delta)

    async def on_generation_end(self) -> ReconcileResult | None:
        return await self._finish()

    async def on_generation_stopped(self) -> ReconcileResult | None:
        return await self._finish()

    async def _finish(self) -> ReconcileResult | None:
        if not self.reconciler.active:
            return None
        # no partial pass may land after this point
        self.reconciler.close()
        message_index = self.reconciler.session.message_index
        try:
            final_text = await self.source.get_message_text(message_index)
        except SourceError as e:
            logger.warning(f"Could not read final text of message {message_index}: {e}")
            final_text = None
        result = self.reconciler.finalize(final_text)
        self.pending_generation = False
        try:
            self.transcript = await self.source.get_transcript()
        except SourceError as e:
            logger.warning(f"Could not refresh transcript: {e}")
        return result

    async def poll_generation(
        self,
        message_index: int | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> ReconcileResult | None:
        """Follow a generation by polling when push token events are unavailable.

        With no index, a session that is already streaming keeps its message.
        """
        if message_index is None and self.reconciler.active:
            message_index = self.reconciler.session.message_index
        self.on_generation_start(message_index)
        poller = FallbackPoller(
            self.reconciler,
            self.source,
            message_index=self.reconciler.session.message_index,
            interval_ms=self.settings.poll_interval_ms,
            max_idle_polls=self.settings.max_idle_polls,
            max_polls=self.settings.max_polls,
            sleep=sleep,
        )
        result = await poller.run()
        self.pending_generation = False
        return result

    # ── Persistence ──────────────────────────────────────

    def snapshot(self) -> PlaylistSnapshot:
        return self.store.snapshot()

    def save_slot(self, slot_id: str) -> dict:
        return storage.save_slot(
            self.character.name, slot_id, self.snapshot(),
            preview=self.store.current_frame().text,
        )

    async def load_slot(self, slot_id: str) -> bool:
        """Restore a slot by handing its snapshot to the next load. False if missing."""
        snapshot = storage.load_slot(self.character.name, slot_id)
        if snapshot is None:
            return False
        self.startup.send(StartupMessage(snapshot=snapshot))
        await self.load()
        return True

    def list_slots(self) -> list[dict]:
        return storage.list_slots(self.character.name)

    def delete_slot(self, slot_id: str) -> bool:
        return storage.delete_slot(self.character.name, slot_id)

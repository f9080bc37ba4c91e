"""
Entry capture wizard.

Drives the three-step capture flow and assembles a validated entry:
apps -> screen time -> reflection and tags.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, Iterable, List, Optional

from screendiary.core.errors import TransportError, ValidationError, WizardStateError
from screendiary.core.guidance import CONNECTION_FALLBACK
from screendiary.core.schemas import SCREEN_TIME_MAX, SCREEN_TIME_MIN, AnalysisResult
from screendiary.core.utils import minutes_to_hours
from screendiary.session.gate import SessionGate

logger = logging.getLogger(__name__)

DEFAULT_SCREEN_TIME = 60


class WizardStep(Enum):
    """Capture wizard states."""
    IDLE = auto()
    APP_SELECTION = auto()
    TIME_SELECTION = auto()
    REFLECTION_AND_TAGS = auto()
    CLOSED = auto()


class ScreenTimeControl:
    """Bounded slider holding whole minutes."""

    def __init__(
        self,
        minimum: int = SCREEN_TIME_MIN,
        maximum: int = SCREEN_TIME_MAX,
        value: int = DEFAULT_SCREEN_TIME,
    ):
        self.minimum = minimum
        self.maximum = maximum
        self.value = value

    @property
    def value(self) -> int:
        return self._value

    @value.setter
    def value(self, minutes: int) -> None:
        self._value = max(self.minimum, min(self.maximum, int(minutes)))

    @property
    def hours_label(self) -> str:
        """Hours with one decimal, as shown next to the slider."""
        return f"{minutes_to_hours(self.value):.1f}"


class Selection:
    """
    Toggle set over a fixed catalog.

    Selected labels are always reported in catalog order.
    """

    def __init__(self, catalog: Iterable[str]):
        self.catalog = list(dict.fromkeys(catalog))
        self._selected: set = set()

    def toggle(self, label: str) -> bool:
        """Flip membership of label. Returns True if now selected."""
        if label not in self.catalog:
            raise ValueError(f"Unknown option: {label}")

        if label in self._selected:
            self._selected.discard(label)
            return False

        self._selected.add(label)
        return True

    def is_selected(self, label: str) -> bool:
        return label in self._selected

    def clear(self) -> None:
        self._selected.clear()

    @property
    def selected(self) -> List[str]:
        return [label for label in self.catalog if label in self._selected]


@dataclass
class WizardDraft:
    """In-progress entry. No invariants until finish."""
    apps: List[str] = field(default_factory=list)
    screen_time_minutes: int = 0
    reflection: str = ""
    tags: List[str] = field(default_factory=list)

    def to_payload(self, user_id: Any = None) -> Dict[str, Any]:
        payload = {
            "apps": list(self.apps),
            "screenTimeMinutes": self.screen_time_minutes,
            "reflection": self.reflection,
            "tags": list(self.tags),
        }
        if user_id is not None:
            payload["userId"] = user_id
        return payload


@dataclass
class AnalysisOverlay:
    """AI guidance shown after an AI-assisted finish, awaiting confirmation."""
    draft: WizardDraft
    result: AnalysisResult


class EntryWizard:
    """
    Multi-step capture state machine.

    Validation failures raise ValidationError and leave the step unchanged.
    There is no way back to a previous step; cancel discards everything.
    """

    def __init__(
        self,
        gate: SessionGate,
        save: Callable[[Dict[str, Any]], Any],
        analyze: Callable[[Dict[str, Any]], AnalysisResult],
        app_catalog: Iterable[str],
        tag_catalog: Iterable[str],
    ):
        self.gate = gate
        self._save = save
        self._analyze = analyze

        self.apps = Selection(app_catalog)
        self.tags = Selection(tag_catalog)
        self.time_control = ScreenTimeControl()
        self.reflection = ""

        self.step = WizardStep.IDLE
        self.draft: Optional[WizardDraft] = None
        self.overlay: Optional[AnalysisOverlay] = None

        self._saved_listeners: List[Callable[[Any], None]] = []

    def on_saved(self, callback: Callable[[Any], None]) -> None:
        """Register a callback invoked with the new entry id after each save."""
        self._saved_listeners.append(callback)

    def _require(self, *steps: WizardStep) -> None:
        if self.step not in steps:
            names = ", ".join(step.name for step in steps)
            raise WizardStateError(f"Not allowed in step {self.step.name} (expected {names})")

    # Transitions

    def open(self) -> None:
        """Start a fresh capture session."""
        self.draft = WizardDraft()
        self.overlay = None
        self.apps.clear()
        self.tags.clear()
        self.reflection = ""
        self.time_control.value = DEFAULT_SCREEN_TIME
        self.step = WizardStep.APP_SELECTION
        logger.debug("Wizard opened")

    def next(self) -> WizardStep:
        """Advance from app selection or time selection."""
        self._require(WizardStep.APP_SELECTION, WizardStep.TIME_SELECTION)

        if self.step is WizardStep.APP_SELECTION:
            selected = self.apps.selected
            if not selected:
                raise ValidationError("Please select at least one app")
            self.draft.apps = selected
            self.step = WizardStep.TIME_SELECTION
        else:
            self.draft.screen_time_minutes = self.time_control.value
            self.step = WizardStep.REFLECTION_AND_TAGS

        logger.debug(f"Wizard advanced to {self.step.name}")
        return self.step

    def _collect_final_step(self) -> WizardDraft:
        self._require(WizardStep.REFLECTION_AND_TAGS)

        if not self.reflection.strip():
            raise ValidationError("Please write a reflection")

        selected_tags = self.tags.selected
        if not selected_tags:
            raise ValidationError("Please select at least one tag")

        self.draft.reflection = self.reflection
        self.draft.tags = selected_tags
        return self.draft

    def finish(self) -> Any:
        """
        Validate and persist the entry.

        Returns the stored entry id. On a save failure the wizard stays on
        the last step with the draft intact.
        """
        draft = self._collect_final_step()
        entry_id = self._persist(draft)

        self.step = WizardStep.CLOSED
        self.draft = None
        self._notify_saved(entry_id)
        return entry_id

    def finish_with_analysis(self) -> AnalysisResult:
        """
        Validate, then ask for AI guidance instead of saving.

        The entry is only persisted by confirm_analysis().
        """
        draft = self._collect_final_step()

        try:
            result = self._analyze(draft.to_payload())
        except TransportError as e:
            logger.warning(f"AI analysis unavailable: {e}")
            result = CONNECTION_FALLBACK

        self.overlay = AnalysisOverlay(draft=draft, result=result)
        self.step = WizardStep.CLOSED
        self.draft = None
        return result

    def confirm_analysis(self) -> Any:
        """Persist the entry shown in the AI overlay and close the overlay."""
        if self.overlay is None:
            raise WizardStateError("No AI analysis is awaiting confirmation")

        entry_id = self._persist(self.overlay.draft)
        self.overlay = None
        self._notify_saved(entry_id)
        return entry_id

    def dismiss_analysis(self) -> None:
        """Close the AI overlay without saving."""
        self.overlay = None

    def cancel(self) -> None:
        """Discard the draft from any step."""
        self.draft = None
        self.overlay = None
        self.step = WizardStep.IDLE
        logger.debug("Wizard cancelled")

    # Step inputs

    def toggle_app(self, label: str) -> bool:
        self._require(WizardStep.APP_SELECTION)
        return self.apps.toggle(label)

    def set_screen_time(self, minutes: int) -> int:
        self._require(WizardStep.TIME_SELECTION)
        self.time_control.value = minutes
        return self.time_control.value

    def set_reflection(self, text: str) -> None:
        self._require(WizardStep.REFLECTION_AND_TAGS)
        self.reflection = text or ""

    def toggle_tag(self, label: str) -> bool:
        self._require(WizardStep.REFLECTION_AND_TAGS)
        return self.tags.toggle(label)

    # Internals

    def _persist(self, draft: WizardDraft) -> Any:
        def submit():
            return self._save(draft.to_payload(self.gate.current_user_id()))

        return self.gate.call(submit)

    def _notify_saved(self, entry_id: Any) -> None:
        for callback in list(self._saved_listeners):
            try:
                callback(entry_id)
            except Exception as e:
                logger.error(f"Saved-entry listener failed: {e}", exc_info=True)

# permit_service/wizard/controller.py
import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import requests

from shared.core.config import settings
from shared.core.exceptions import (
    IncompleteSubmissionError,
    InvalidTransitionError,
    PermitServiceError,
)

from . import session as wizard
from .client import VerificationApiClient

logger = logging.getLogger(__name__)

REQUEST_ERRORS = (PermitServiceError, requests.RequestException)


class VerificationWizardController:
    """Drives one operator's wizard session against the API.

    Edits are applied locally and persisted as the attempt's draft, either by
    an explicit save or by a debounced autosave: one single-shot timer that
    every edit resets. Failures of explicit calls land in ``session.error``
    (and ``last_error``); autosave failures are only logged.
    """

    def __init__(self, client: VerificationApiClient, owner_id, autosave: bool = True,
                 autosave_interval: Optional[float] = None,
                 timer_factory: Callable[..., Any] = threading.Timer):
        self.client = client
        self.owner_id = str(owner_id)
        self.autosave = autosave
        self.autosave_interval = (
            settings.AUTOSAVE_INTERVAL_SECONDS if autosave_interval is None else autosave_interval)
        self.timer_factory = timer_factory
        self.last_error: Optional[PermitServiceError] = None

        self._lock = threading.RLock()
        # at most one draft save on the wire
        self._save_lock = threading.Lock()
        self._timer = None
        self._session = wizard.WizardSession(owner_id=self.owner_id)
        # last state the server confirmed, restored on cancel
        self._persisted = self._session

    @property
    def session(self) -> wizard.WizardSession:
        with self._lock:
            return self._session

    # ----------------- Internal -----------------
    def _fail(self, error: Exception) -> None:
        self.last_error = error if isinstance(error, PermitServiceError) else None
        with self._lock:
            self._session = wizard.with_error(self._session, str(error))

    def _apply(self, transition, *args, **kwargs) -> wizard.WizardSession:
        with self._lock:
            self._session = transition(self._session, *args, **kwargs)
            current = self._session
        self._schedule_autosave()
        return current

    def _cancel_timer(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _schedule_autosave(self) -> None:
        with self._lock:
            if not self.autosave or not self._session.is_dirty or not self._session.attempt_id:
                return
            self._cancel_timer()
            self._timer = self.timer_factory(self.autosave_interval, self._autosave)
            self._timer.daemon = True
            self._timer.start()

    def _autosave(self) -> None:
        with self._lock:
            self._timer = None
        # a save already in flight reschedules if edits remain
        if not self._save_lock.acquire(blocking=False):
            return
        try:
            self._save(explicit=False)
        finally:
            self._save_lock.release()

    def _save(self, explicit: bool) -> bool:
        """Post the current draft onto the session's attempt. Caller holds ``_save_lock``."""
        with self._lock:
            captured = self._session
        if not captured.is_dirty:
            return True
        if not captured.attempt_id:
            if explicit:
                self._fail(InvalidTransitionError("No active verification attempt"))
            return False

        try:
            self.client.save_draft(self.owner_id, wizard.draft_data(captured), captured.attempt_id)
        except REQUEST_ERRORS as e:
            if explicit:
                self._fail(e)
            else:
                logger.warning("Autosave for owner %s failed: %s", self.owner_id, e)
            return False

        saved_at = datetime.utcnow()
        with self._lock:
            self._session = wizard.mark_saved(self._session, captured.revision, saved_at)
            self._persisted = wizard.mark_saved(captured, captured.revision, saved_at)
            still_dirty = self._session.is_dirty
        if still_dirty:
            # an edit arrived while the save was in flight
            self._schedule_autosave()
        return True

    # ----------------- Navigation / edits -----------------
    def next_step(self) -> wizard.WizardSession:
        return self._apply(wizard.next_step)

    def prev_step(self) -> wizard.WizardSession:
        return self._apply(wizard.prev_step)

    def go_to_step(self, step) -> wizard.WizardSession:
        return self._apply(wizard.go_to_step, step)

    def update_section(self, section, status, notes: Optional[str] = None) -> wizard.WizardSession:
        return self._apply(wizard.update_section, section, status, notes)

    # ----------------- Server operations -----------------
    def load(self) -> bool:
        """Pick up the owner's open attempt, if any, as a clean session."""
        try:
            data = self.client.get_verification(self.owner_id, include_documents=True)
        except REQUEST_ERRORS as e:
            self._fail(e)
            return False

        current = data.get("currentAttempt")
        if current:
            self._cancel_timer()
            with self._lock:
                self._session = wizard.session_from_attempt(
                    self.owner_id, current, data.get("documentBreakdown"))
                self._persisted = self._session
        return True

    def create_verification(self) -> Optional[str]:
        """Open a new attempt. An existing open attempt surfaces as an error."""
        try:
            attempt = self.client.create_verification(self.owner_id)
        except REQUEST_ERRORS as e:
            self._fail(e)
            return None

        with self._lock:
            self._session = replace(
                wizard.session_from_attempt(self.owner_id, attempt),
                current_step=self._session.current_step,
            )
            self._persisted = self._session
        self.last_error = None
        logger.info("Verification attempt %s created for owner %s", attempt["id"], self.owner_id)
        return str(attempt["id"])

    def save_verification(self) -> bool:
        """Flush the draft now, after any autosave already in flight."""
        self._cancel_timer()
        with self._save_lock:
            return self._save(explicit=True)

    def update_document_verification(self, document_id, status, notes: Optional[str] = None) -> bool:
        attempt_id = self.session.attempt_id
        if not attempt_id:
            self._fail(InvalidTransitionError("No active verification attempt"))
            return False

        status = getattr(status, "value", status)
        try:
            self.client.update_document_verification(
                self.owner_id, attempt_id, document_id, status, notes)
        except REQUEST_ERRORS as e:
            self._fail(e)
            return False

        with self._lock:
            self._session = wizard.apply_document_decision(self._session, document_id, status, notes)
            self._persisted = wizard.apply_document_decision(self._persisted, document_id, status, notes)
        return True

    def submit_verification(self, decision_reason: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Flush the draft and close the attempt.

        Refused locally, naming the sections, while any section is not yet
        VERIFIED, REJECTED or NEEDS_INFO.
        """
        current = self.session
        missing = wizard.incomplete_sections(current)
        if missing:
            self._fail(IncompleteSubmissionError(missing))
            return None
        if not current.attempt_id:
            self._fail(InvalidTransitionError("No active verification attempt"))
            return None

        if not self.save_verification():
            return None

        current = self.session
        try:
            result = self.client.submit_verification(
                self.owner_id,
                current.attempt_id,
                sections={
                    key: {"status": value["status"], "notes": value["notes"]}
                    for key, value in wizard.sections_payload(current).items()
                },
                decision_reason=decision_reason,
            )
        except REQUEST_ERRORS as e:
            self._fail(e)
            return None

        self._cancel_timer()
        with self._lock:
            self._session = replace(
                self._session,
                current_step=wizard.WizardStep.COMPLETE,
                is_dirty=False,
                error=None,
            )
            self._persisted = self._session
        self.last_error = None
        logger.info("Verification %s submitted: %s", current.attempt_id, result.get("decision"))
        return result

    def cancel_verification(self) -> wizard.WizardSession:
        """Drop unsaved local edits. The persisted attempt is left alone."""
        self._cancel_timer()
        with self._lock:
            self._session = self._persisted
            return self._session

    def close(self) -> None:
        self._cancel_timer()

"""
Recording a single water level or rainfall reading.

Every rendered entry form carries a fresh ``submission_token``. The token is
stored with the row under a unique constraint, so a second POST of the same
form (double click, browser resubmit, two workers racing) writes nothing and
raises DuplicateSubmission instead.
"""
import logging

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from .exceptions import AuthError, DuplicateSubmission, EntryValidationError, NetworkError
from .forms import RainfallForm, WaterLevelForm
from .reports import ReportKind, get_kind
from .session_gate import identity_for_user

logger = logging.getLogger(__name__)

ENTRY_FORMS = {
    ReportKind.WATER_LEVEL: WaterLevelForm,
    ReportKind.RAINFALL: RainfallForm,
}


def build_form(kind, data=None):
    return ENTRY_FORMS[get_kind(kind)](data)


def require_writer(user):
    identity = identity_for_user(user)
    if identity is None:
        raise AuthError("User not authenticated")
    if not identity.can_enter_data:
        raise AuthError("Viewers do not have permission to submit data.")
    return identity


def submit_form(user, form):
    """
    Validate ``form`` and append one measurement row recorded by ``user``.

    Raises AuthError / EntryValidationError before touching the store,
    DuplicateSubmission when the token was already used, and NetworkError
    when the store rejects the insert.
    """
    require_writer(user)

    if not form.is_valid():
        raise EntryValidationError("Please correct the highlighted fields.", errors=form.errors)

    model = form._meta.model
    token = form.cleaned_data.get('submission_token')
    if token and model.objects.filter(submission_token=token).exists():
        raise DuplicateSubmission("This measurement was already recorded.")

    measurement = form.save(commit=False)
    measurement.recorded_by = user
    measurement.submission_token = token
    measurement.recorded_at = form.cleaned_data.get('recorded_at') or timezone.now()

    try:
        with transaction.atomic():
            measurement.save()
    except IntegrityError as e:
        if token and model.objects.filter(submission_token=token).exists():
            raise DuplicateSubmission("This measurement was already recorded.") from e
        logger.error("Insert into %s rejected: %s", model._meta.db_table, e)
        raise NetworkError("Failed to record measurement") from e
    except DatabaseError as e:
        logger.error("Insert into %s failed: %s", model._meta.db_table, e)
        raise NetworkError("Failed to record measurement") from e

    logger.info(
        "Recorded %s at %s by %s",
        model._meta.db_table, measurement.location.name, user.get_username(),
    )
    return measurement


def submit(kind, user, data):
    """Build the entry form for ``kind`` from ``data`` and submit it."""
    return submit_form(user, build_form(kind, data))

"""
User context: the organization, project and budget a user is working in.

The state is an immutable UserContext. ``set_user_context`` shallow-merges
a partial update into a new value, persists the ids and notifies
subscribers synchronously. Views get a store per request through
``get_user_context`` and read scope ids with ``scope_id``.
"""
import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Optional

from django.db import DatabaseError, transaction
from rest_framework.exceptions import ValidationError

from archub.core.services import ServiceError
from .models import UserPreferences

logger = logging.getLogger(__name__)

# context attribute -> UserPreferences column
PERSISTED_FIELDS = {
    'organization_id': 'last_organization_id',
    'project_id': 'last_project_id',
    'budget_id': 'last_budget_id',
}


@dataclass(frozen=True)
class UserContext:
    organization_id: Optional[int] = None
    project_id: Optional[int] = None
    budget_id: Optional[Any] = None
    organization: Optional[dict] = None
    current_projects: tuple = field(default_factory=tuple)

    def as_dict(self):
        return {
            'organization_id': self.organization_id,
            'project_id': self.project_id,
            'budget_id': str(self.budget_id) if self.budget_id else None,
            'organization': self.organization,
            'current_projects': list(self.current_projects),
        }


CONTEXT_FIELDS = frozenset(f.name for f in fields(UserContext))


class UserContextStore:
    def __init__(self, user=None, state=None):
        self.user = user
        self._state = state or UserContext()
        self._subscribers = []

    @classmethod
    def for_user(cls, user):
        store = cls(user=user)
        store.hydrate()
        return store

    def get_state(self):
        return self._state

    def subscribe(self, callback):
        """Register ``callback(state, previous)``; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def set_user_context(self, **partial):
        unknown = set(partial) - CONTEXT_FIELDS
        if unknown:
            raise TypeError(f"Unknown user context field(s): {', '.join(sorted(unknown))}")
        if 'current_projects' in partial and partial['current_projects'] is not None:
            partial['current_projects'] = tuple(partial['current_projects'])

        previous = self._state
        self._state = replace(previous, **partial)
        self._persist(self._state)
        for callback in list(self._subscribers):
            callback(self._state, previous)
        return self._state

    def clear(self):
        """Reset to an empty context (logout)."""
        return self.set_user_context(
            organization_id=None, project_id=None, budget_id=None,
            organization=None, current_projects=(),
        )

    def _persist(self, state):
        if self.user is None or not self.user.is_authenticated:
            return
        values = {column: getattr(state, attr) for attr, column in PERSISTED_FIELDS.items()}
        try:
            with transaction.atomic():
                UserPreferences.objects.update_or_create(user=self.user, defaults=values)
        except DatabaseError as e:
            logger.warning(f"Could not persist context for user {self.user.pk}: {e}")

    def hydrate(self):
        """Load persisted ids; first membership is used when nothing was saved yet."""
        if self.user is None or not self.user.is_authenticated:
            return self._state

        prefs = UserPreferences.objects.filter(user=self.user).first()
        if prefs is not None:
            self._state = UserContext(
                organization_id=prefs.last_organization_id,
                project_id=prefs.last_project_id,
                budget_id=prefs.last_budget_id,
            )
            return self._state

        from archub.organizations.models import OrganizationMember
        membership = (
            OrganizationMember.objects.filter(user=self.user)
            .order_by('created_at', 'id')
            .first()
        )
        organization_id = membership.organization_id if membership else None
        self._state = UserContext(organization_id=organization_id)
        try:
            with transaction.atomic():
                UserPreferences.objects.create(user=self.user, last_organization_id=organization_id)
        except DatabaseError as e:
            logger.warning(f"Could not create preferences for user {self.user.pk}: {e}")
        return self._state

    def refresh_data(self):
        """Reload the organization snapshot and its project list."""
        organization_id = self._state.organization_id
        if organization_id is None:
            return self._state

        from archub.organizations.services import organizations_service
        from archub.projects.services import projects_service
        try:
            organization = organizations_service.get(organization_id)
            projects = projects_service.get_all(organization_id=organization_id)
        except ServiceError as e:
            logger.warning(f"Could not refresh context data for organization {organization_id}: {e}")
            return self._state
        return self.set_user_context(organization=organization, current_projects=projects)


def get_user_context(request):
    """The request's context store, hydrated once per request."""
    raw = getattr(request, '_request', request)
    store = getattr(raw, 'archub_user_context', None)
    if store is None:
        store = UserContextStore.for_user(request.user)
        raw.archub_user_context = store
    return store


def scope_id(request, name):
    """
    Scope id from the query string, else from the user context.

    A requested id must be numeric (400) and belong to one of the user's
    organizations (404). A remembered id the user can no longer reach
    resolves to None.
    """
    from archub.organizations.access import SCOPE_CHECKS, check_scope

    value = request.query_params.get(name)
    if value:
        try:
            value = int(value)
        except ValueError:
            raise ValidationError({name: ['Debe ser un identificador numérico.']})
        check_scope(request.user, name, value)
        return value

    value = getattr(get_user_context(request).get_state(), name, None)
    if value is not None:
        can_access, _ = SCOPE_CHECKS[name]
        if not can_access(request.user, value):
            logger.info(f"Ignoring unreachable {name}={value} in context of user {request.user.pk}")
            return None
    return value

"""
Navigation state: which top-level section and which sub-view are active.

Section and view always change together. ``set_section`` picks the
section's default view, ``set_view`` derives the owning section, and
``navigate`` refuses a view from another section, so the sidebar and the
content pane can never disagree.
"""
import enum
import logging
from dataclasses import dataclass

from django.db import DatabaseError, transaction

from .models import UserPreferences

logger = logging.getLogger(__name__)


class Section(str, enum.Enum):
    DASHBOARD = 'dashboard'
    ORGANIZATION = 'organization'
    PROJECTS = 'projects'
    BUDGETS = 'budgets'
    MOVEMENTS = 'movements'
    CONTACTS = 'contacts'
    CALENDAR = 'calendar'
    ADMIN_COMMUNITY = 'admin-community'
    ADMIN_LIBRARY = 'admin-library'
    PROFILE = 'profile'


class View(str, enum.Enum):
    DASHBOARD_MAIN = 'dashboard-main'
    DASHBOARD_TIMELINE = 'dashboard-timeline'
    ORGANIZATION_OVERVIEW = 'organization-overview'
    ORGANIZATION_TEAM = 'organization-team'
    ORGANIZATION_ACTIVITY = 'organization-activity'
    PROJECTS_OVERVIEW = 'projects-overview'
    PROJECTS_LIST = 'projects-list'
    BUDGETS_LIST = 'budgets-list'
    BUDGETS_TASKS = 'budgets-tasks'
    BUDGETS_TASKS_MULTIPLE = 'budgets-tasks-multiple'
    BUDGETS_MATERIALS = 'budgets-materials'
    SITELOG_MAIN = 'sitelog-main'
    MOVEMENTS_MAIN = 'movements-main'
    TRANSACTIONS = 'transactions'
    CONTACTS = 'contacts'
    CALENDAR = 'calendar'
    ADMIN_ORGANIZATIONS = 'admin-organizations'
    ADMIN_USERS = 'admin-users'
    ADMIN_CATEGORIES = 'admin-categories'
    ADMIN_MATERIAL_CATEGORIES = 'admin-material-categories'
    ADMIN_MATERIALS = 'admin-materials'
    ADMIN_UNITS = 'admin-units'
    ADMIN_ELEMENTS = 'admin-elements'
    ADMIN_ACTIONS = 'admin-actions'
    ADMIN_TASKS = 'admin-tasks'
    ADMIN_PERMISSIONS = 'admin-permissions'
    PROFILE_INFO = 'profile-info'
    PROFILE_SUBSCRIPTION = 'profile-subscription'
    PROFILE_NOTIFICATIONS = 'profile-notifications'
    SUBSCRIPTION_TABLES = 'subscription-tables'


SECTION_DEFAULT_VIEW = {
    Section.DASHBOARD: View.DASHBOARD_TIMELINE,
    Section.ORGANIZATION: View.ORGANIZATION_OVERVIEW,
    Section.PROJECTS: View.PROJECTS_LIST,
    Section.BUDGETS: View.BUDGETS_TASKS_MULTIPLE,
    Section.MOVEMENTS: View.MOVEMENTS_MAIN,
    Section.CONTACTS: View.CONTACTS,
    Section.CALENDAR: View.CALENDAR,
    Section.ADMIN_COMMUNITY: View.ADMIN_ORGANIZATIONS,
    Section.ADMIN_LIBRARY: View.ADMIN_TASKS,
    Section.PROFILE: View.PROFILE_INFO,
}

_PREFIX_SECTIONS = (
    ('dashboard-', Section.DASHBOARD),
    ('organization-', Section.ORGANIZATION),
    ('projects-', Section.PROJECTS),
    ('budgets-', Section.BUDGETS),
    # site logs live under the budgets sidebar entry
    ('sitelog-', Section.BUDGETS),
    ('movements-', Section.MOVEMENTS),
    ('profile-', Section.PROFILE),
)

_VIEW_SECTIONS = {
    View.TRANSACTIONS: Section.MOVEMENTS,
    View.CONTACTS: Section.CONTACTS,
    View.CALENDAR: Section.CALENDAR,
    View.ADMIN_ORGANIZATIONS: Section.ADMIN_COMMUNITY,
    View.ADMIN_USERS: Section.ADMIN_COMMUNITY,
    View.SUBSCRIPTION_TABLES: Section.PROFILE,
}


def section_for_view(view):
    view = View(view)
    if view in _VIEW_SECTIONS:
        return _VIEW_SECTIONS[view]
    for prefix, section in _PREFIX_SECTIONS:
        if view.value.startswith(prefix):
            return section
    if view.value.startswith('admin-'):
        return Section.ADMIN_LIBRARY
    return Section.DASHBOARD


@dataclass(frozen=True)
class NavigationState:
    current_section: Section = Section.DASHBOARD
    current_view: View = View.DASHBOARD_TIMELINE

    def as_dict(self):
        return {'section': self.current_section.value, 'view': self.current_view.value}


class NavigationStore:
    def __init__(self, user=None, state=None):
        self.user = user
        self._state = state or NavigationState()
        self._subscribers = []

    @classmethod
    def for_user(cls, user):
        store = cls(user=user)
        prefs = UserPreferences.objects.filter(user=user).first() if user is not None else None
        if prefs and prefs.last_view:
            try:
                view = View(prefs.last_view)
            except ValueError:
                logger.warning(f"Ignoring unknown persisted view '{prefs.last_view}' for user {user.pk}")
            else:
                store._state = NavigationState(section_for_view(view), view)
        return store

    def get_state(self):
        return self._state

    def subscribe(self, callback):
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def _commit(self, state):
        previous = self._state
        self._state = state
        self._persist(state)
        for callback in list(self._subscribers):
            callback(state, previous)
        return state

    def _persist(self, state):
        if self.user is None or not self.user.is_authenticated:
            return
        try:
            with transaction.atomic():
                UserPreferences.objects.update_or_create(
                    user=self.user,
                    defaults={'last_section': state.current_section.value, 'last_view': state.current_view.value},
                )
        except DatabaseError as e:
            logger.warning(f"Could not persist navigation for user {self.user.pk}: {e}")

    def set_section(self, section):
        section = Section(section)
        return self._commit(NavigationState(section, SECTION_DEFAULT_VIEW[section]))

    def set_view(self, view):
        view = View(view)
        return self._commit(NavigationState(section_for_view(view), view))

    def navigate(self, section, view=None):
        section = Section(section)
        if view is None:
            return self.set_section(section)
        view = View(view)
        if section_for_view(view) != section:
            raise ValueError(f"View '{view.value}' does not belong to section '{section.value}'")
        return self._commit(NavigationState(section, view))

"""
Cache invalidation signals
Automatically invalidate query cache entries when rows change
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .query_cache import Entity, query_client

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

# model label -> entities whose cached lists include it
MODEL_ENTITIES = {
    'core.User': (Entity.USERS,),
    'core.Plan': (Entity.PLANS,),
    'core.Activity': (Entity.ACTIVITIES,),
    'organizations.Organization': (Entity.ORGANIZATIONS, Entity.STATS),
    'organizations.OrganizationMember': (Entity.ORGANIZATIONS,),
    'projects.Project': (Entity.PROJECTS, Entity.STATS),
    'contacts.Contact': (Entity.CONTACTS,),
    'contacts.ContactType': (Entity.CONTACT_TYPES,),
    'contacts.ContactTypeLink': (Entity.CONTACTS, Entity.CONTACT_TYPES),
    'sitelogs.SiteLog': (Entity.SITE_LOGS, Entity.STATS),
    'sitelogs.SiteLogTask': (Entity.SITE_LOGS,),
    'sitelogs.SiteLogAttendee': (Entity.SITE_LOGS,),
    'sitelogs.SiteLogFile': (Entity.SITE_LOGS,),
    'finances.Movement': (Entity.MOVEMENTS,),
    'finances.MovementConcept': (Entity.MOVEMENT_CONCEPTS,),
    'finances.Wallet': (Entity.WALLETS,),
    'finances.OrganizationWallet': (Entity.WALLETS,),
    'library.Unit': (Entity.UNITS,),
    'library.Action': (Entity.ACTIONS,),
    'library.TaskCategory': (Entity.TASK_CATEGORIES,),
    'library.MaterialCategory': (Entity.MATERIALS,),
    'library.Material': (Entity.MATERIALS,),
    'library.Task': (Entity.TASKS,),
    'library.TaskMaterial': (Entity.TASKS,),
    'budgets.Budget': (Entity.BUDGETS,),
    'budgets.BudgetTask': (Entity.BUDGET_TASKS,),
}


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations to prevent excessive invalidation.
    Remember to manually invalidate the query cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


def invalidate_entities(entities):
    for entity in entities:
        try:
            query_client.invalidate(entity)
        except Exception as e:
            logger.warning(f"Could not invalidate {entity.value} queries: {e}")


@receiver([post_save, post_delete])
def invalidate_query_cache(sender, instance, **kwargs):
    """Invalidate cached queries for the changed model once the write commits"""
    if is_suspended():
        return

    entities = MODEL_ENTITIES.get(sender._meta.label)
    if not entities:
        return

    # after commit so a concurrent read cannot repopulate with stale rows
    transaction.on_commit(lambda: invalidate_entities(entities))

"""
Tenant checks.

Every organization-owned row is reachable only by members of its
organization and by administrators. Rows the user cannot reach answer 404,
the same as rows that do not exist.
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from django.shortcuts import get_object_or_404

from archub.core.utils import is_admin_user
from .models import OrganizationMember

logger = logging.getLogger(__name__)


def member_organizations(user):
    """Subquery of the organization ids ``user`` belongs to."""
    return OrganizationMember.objects.filter(user=user).values('organization_id')


def restrict_to_member(queryset, user, organization_lookup):
    """Narrow ``queryset`` to rows whose ``organization_lookup`` is one of the user's organizations."""
    if is_admin_user(user):
        return queryset
    return queryset.filter(**{f'{organization_lookup}__in': member_organizations(user)})


def get_owned_or_404(model, pk, user, organization_lookup):
    """Fetch ``model`` row ``pk`` when it belongs to one of the user's organizations."""
    return get_object_or_404(restrict_to_member(model.objects.all(), user, organization_lookup), pk=pk)


def can_access_organization(user, organization_id):
    if is_admin_user(user):
        return True
    return OrganizationMember.objects.filter(organization_id=organization_id, user=user).exists()


def can_access_project(user, project_id):
    from archub.projects.models import Project
    return restrict_to_member(Project.objects.filter(pk=project_id), user, 'organization_id').exists()


def can_access_budget(user, budget_id):
    from archub.budgets.models import Budget
    return restrict_to_member(Budget.objects.filter(pk=budget_id), user, 'project__organization_id').exists()


SCOPE_CHECKS = {
    'organization_id': (can_access_organization, 'Organización no encontrada'),
    'project_id': (can_access_project, 'Proyecto no encontrado'),
    'budget_id': (can_access_budget, 'Presupuesto no encontrado'),
}


def check_scope(user, name, value):
    """Raise Http404 unless ``user`` may work inside scope ``name`` = ``value``."""
    if value is None or value == '':
        return
    can_access, message = SCOPE_CHECKS[name]
    try:
        allowed = can_access(user, value)
    except (ValueError, DjangoValidationError):
        # malformed ids are rejected by the form serializer
        return
    if not allowed:
        logger.warning(f"User {getattr(user, 'pk', None)} denied {name}={value}")
        raise Http404(message)


def check_payload_scope(user, data, field, name):
    """Same as check_scope for a foreign key submitted in a form (``project``, ``organization``)."""
    if hasattr(data, 'get'):
        check_scope(user, name, data.get(field))

import logging

from django.db.models import Count, Q

from archub.core.services import ModelService
from .models import Organization, OrganizationMember
from .serializers import OrganizationSerializer, OrganizationMemberSerializer

logger = logging.getLogger(__name__)


class OrganizationsService(ModelService):
    model = Organization
    serializer_class = OrganizationSerializer
    ordering = ('-created_at', '-id')
    select_related = ('owner',)
    scope_fields = {'user_id': 'members__user_id'}
    label = 'organizaciones'
    not_found_message = 'Organización no encontrada'

    def get_queryset(self):
        return super().get_queryset().annotate(
            project_count=Count('projects', filter=Q(projects__is_active=True), distinct=True),
            member_count=Count('members', distinct=True),
        )

    def perform_save(self, serializer, **extra):
        creating = serializer.instance is None
        organization = serializer.save(**extra)
        if creating:
            OrganizationMember.objects.create(
                organization=organization,
                user=organization.owner,
                role='owner',
            )
            logger.info(f"Owner {organization.owner_id} joined organization {organization.pk}")
        return organization


class OrganizationMembersService(ModelService):
    model = OrganizationMember
    serializer_class = OrganizationMemberSerializer
    ordering = ('created_at', 'id')
    select_related = ('user',)
    scope_fields = {'organization_id': 'organization_id'}
    label = 'miembros'


organizations_service = OrganizationsService()
organization_members_service = OrganizationMembersService()


def is_member(organization_id, user):
    return OrganizationMember.objects.filter(organization_id=organization_id, user=user).exists()

import logging
import uuid

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction

from archub.core.services import ModelService, ServiceError
from .models import Contact, ContactType, ContactTypeLink
from .serializers import ContactSerializer, ContactTypeSerializer

logger = logging.getLogger(__name__)


class ContactsService(ModelService):
    model = Contact
    serializer_class = ContactSerializer
    ordering = ('-created_at', '-id')
    prefetch_related = ('types',)
    scope_fields = {'organization_id': 'organization_id'}
    label = 'contactos'

    def get_by_type(self, type_id, **scope):
        try:
            queryset = self.filter_scope(self.get_queryset(), **scope).filter(type_links__type_id=type_id).distinct()
            return self.serialize(queryset, many=True)
        except (DatabaseError, ValueError, DjangoValidationError) as e:
            logger.error(f"Error fetching contacts by type {type_id}: {e}")
            raise ServiceError("Error al obtener los contactos por tipo", original=e) from e


class ContactTypesService(ModelService):
    model = ContactType
    serializer_class = ContactTypeSerializer
    ordering = ('name',)
    label = 'tipos de contacto'

    def get_contact_types(self, contact_id):
        try:
            queryset = self.get_queryset().filter(links__contact_id=contact_id)
            return self.serialize(queryset, many=True)
        except (DatabaseError, ValueError, DjangoValidationError) as e:
            logger.error(f"Error fetching contact types for contact {contact_id}: {e}")
            raise ServiceError("Error al obtener los tipos del contacto", original=e) from e

    def update_contact_types(self, contact_id, type_ids):
        """Replace the contact's type links with ``type_ids``."""
        try:
            type_ids = list(dict.fromkeys(str(uuid.UUID(str(t))) for t in type_ids))
            with transaction.atomic():
                known = set(str(pk) for pk in ContactType.objects.filter(pk__in=type_ids).values_list('pk', flat=True))
                missing = [t for t in type_ids if t not in known]
                if missing:
                    raise ServiceError(
                        "Error al actualizar los tipos de contacto",
                        original=f"Tipos inexistentes: {', '.join(missing)}",
                    )
                ContactTypeLink.objects.filter(contact_id=contact_id).delete()
                ContactTypeLink.objects.bulk_create([
                    ContactTypeLink(contact_id=contact_id, type_id=type_id) for type_id in type_ids
                ])
        except (DatabaseError, ValueError, DjangoValidationError) as e:
            logger.error(f"Error updating contact types for contact {contact_id}: {e}")
            raise ServiceError("Error al actualizar los tipos de contacto", original=e) from e
        logger.info(f"Contact {contact_id} now has {len(type_ids)} type(s)")


contacts_service = ContactsService()
contact_types_service = ContactTypesService()

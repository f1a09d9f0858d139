"""
Contact form submission.

The form carries the contact fields plus the selected contact types. The
contact row is written first, then its type links are replaced, then the
contact lists are invalidated, then the form is closed with a success
notification. Both writes share one transaction.
"""
from django.db import transaction

from archub.core.query_cache import Entity, Mutation, Notification
from .serializers import ContactFormSerializer
from .services import contacts_service, contact_types_service

CONTACT_INVALIDATES = [(Entity.CONTACTS,), (Entity.CONTACT_TYPES,)]


def flatten_contact_form(data):
    """Split form data into contact fields and the list of type ids."""
    values = {key: value for key, value in data.items() if key != 'contact_types'}
    form = ContactFormSerializer(data={'contact_types': data.get('contact_types') or []})
    form.is_valid(raise_exception=True)
    return values, [str(type_id) for type_id in form.validated_data['contact_types']]


def save_contact(context, data, contact=None, on_close=None):
    """Create (``contact`` is None) or update a contact and its types."""
    values, type_ids = flatten_contact_form(data)
    if contact is None and not values.get('organization'):
        values['organization'] = context.get_state().organization_id

    def persist(values):
        with transaction.atomic():
            if contact is None:
                saved = contacts_service.create(values)
            else:
                saved = contacts_service.update(contact, values)
            contact_types_service.update_contact_types(saved['id'], type_ids)
        return contacts_service.get(saved['id'])

    def on_success(saved):
        if on_close:
            on_close(saved)

    if contact is None:
        notification = Notification('Contacto creado', 'El contacto ha sido creado exitosamente')
    else:
        notification = Notification('Contacto actualizado', 'El contacto ha sido actualizado exitosamente')

    mutation = Mutation(
        persist,
        invalidates=CONTACT_INVALIDATES,
        success_message=notification,
        error_message='No se pudo guardar el contacto',
        on_success=on_success,
        pending_key=f"contact-save:{getattr(context.user, 'pk', None)}:{contact or 'new'}",
    )
    return mutation.mutate(values)


def delete_contact(contact_id):
    mutation = Mutation(
        contacts_service.delete,
        invalidates=CONTACT_INVALIDATES,
        success_message='Contacto eliminado',
        error_message='No se pudo eliminar el contacto',
    )
    return mutation.mutate(contact_id)

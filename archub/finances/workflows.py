"""Movement form submission."""
from archub.core.query_cache import Entity, Mutation, Notification
from archub.core.utils import create_activity
from .models import Movement
from .services import movements_service

MOVEMENT_INVALIDATES = [(Entity.MOVEMENTS,), (Entity.TIMELINE_EVENTS,)]


def normalize_movement_form(data, project_id=None):
    """Form values with a date-only ``created_at_local`` expanded to midnight."""
    values = dict(data.items()) if hasattr(data, 'items') else dict(data)
    local = values.get('created_at_local')
    if isinstance(local, str) and local and 'T' not in local:
        values['created_at_local'] = f"{local}T00:00:00"
    for key in ('related_contact', 'related_task', 'wallet'):
        if values.get(key) == '':
            values[key] = None
    if project_id and not values.get('project'):
        values['project'] = project_id
    return values


def save_movement(context, data, movement=None, user=None):
    """Create (``movement`` is None) or update a movement."""
    values = normalize_movement_form(data, project_id=context.get_state().project_id if movement is None else None)

    if movement is None:
        def persist(values):
            return movements_service.create(values)

        def on_success(saved):
            create_activity(
                activity_type='movement_created',
                title=f"Movimiento: {saved['concept_name']} {saved['currency']} {saved['amount']}",
                project=Movement.objects.select_related('project__organization').get(pk=saved['id']).project,
                user=user,
            )

        notification = Notification('Movimiento creado', 'El movimiento se ha guardado correctamente.')
        error_message = 'No se pudo crear el movimiento. Intenta nuevamente.'
    else:
        def persist(values):
            return movements_service.update(movement, values)

        on_success = None
        notification = Notification('Movimiento actualizado', 'El movimiento se ha actualizado correctamente.')
        error_message = 'No se pudo actualizar el movimiento.'

    mutation = Mutation(
        persist,
        invalidates=MOVEMENT_INVALIDATES,
        success_message=notification,
        error_message=error_message,
        on_success=on_success,
        pending_key=f"movement-save:{getattr(user, 'pk', None)}:{movement or 'new'}",
    )
    return mutation.mutate(values)


def delete_movement(movement_id):
    mutation = Mutation(
        movements_service.delete,
        invalidates=MOVEMENT_INVALIDATES,
        success_message=Notification('Movimiento eliminado', 'El movimiento se ha eliminado correctamente.'),
        error_message='No se pudo eliminar el movimiento.',
    )
    return mutation.mutate(movement_id)

"""Create-organization flow: owner membership plus a switch of the user's context."""
from archub.core.query_cache import Entity, Mutation, Notification
from .services import organizations_service


def create_organization(context, data, user):
    """Create an organization owned by ``user`` and make it the current one."""

    def on_success(organization):
        context.set_user_context(organization_id=organization['id'], project_id=None, budget_id=None)
        context.refresh_data()

    mutation = Mutation(
        lambda payload: organizations_service.create(payload, owner=user),
        invalidates=[(Entity.ORGANIZATIONS,), (Entity.STATS,)],
        success_message=lambda organization: Notification(
            'Organización creada',
            f"{organization['name']} ha sido creada exitosamente.",
        ),
        error_message='Hubo un problema al crear la organización. Inténtalo de nuevo.',
        on_success=on_success,
        pending_key=f'organization-create:{user.pk}',
    )
    return mutation.mutate(data)

"""Create/update project flows used by the project form."""
from rest_framework.exceptions import ValidationError

from archub.core.query_cache import Entity, Mutation, Notification
from archub.core.utils import create_activity
from .models import Project
from .services import projects_service

PROJECT_INVALIDATES = [(Entity.PROJECTS,), (Entity.STATS,), (Entity.ACTIVITIES,)]


def create_project(context, data, user):
    """Create a project in the current organization, log it and make it current."""
    payload = dict(data.items()) if hasattr(data, 'items') else dict(data)
    payload.setdefault('organization', context.get_state().organization_id)
    if not payload.get('organization'):
        raise ValidationError({'organization': ['Seleccioná una organización antes de crear un proyecto']})

    def on_success(project):
        create_activity(
            activity_type='project_created',
            title=f"Proyecto creado: {project['name']}",
            project=Project.objects.select_related('organization').get(pk=project['id']),
            user=user,
        )
        context.set_user_context(organization_id=project['organization'], project_id=project['id'])
        context.refresh_data()

    mutation = Mutation(
        lambda values: projects_service.create(values, created_by=user),
        invalidates=PROJECT_INVALIDATES,
        success_message=Notification('Proyecto creado', 'El proyecto ha sido creado exitosamente'),
        error_message='No se pudo crear el proyecto',
        on_success=on_success,
        pending_key=f'project-create:{user.pk}',
    )
    return mutation.mutate(payload)


def update_project(project_id, data, user):
    def on_success(project):
        create_activity(
            activity_type='project_updated',
            title=f"Proyecto actualizado: {project['name']}",
            project=Project.objects.select_related('organization').get(pk=project['id']),
            user=user,
        )

    mutation = Mutation(
        projects_service.update,
        invalidates=PROJECT_INVALIDATES,
        success_message=Notification('Proyecto actualizado', 'El proyecto ha sido actualizado exitosamente'),
        error_message='No se pudo actualizar el proyecto',
        on_success=on_success,
        pending_key=f'project-update:{project_id}',
    )
    return mutation.mutate(project_id, data)

"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from archub.core.models import Plan
from archub.organizations.models import Organization, OrganizationMember
from archub.projects.models import Project
from archub.contacts.models import Contact, ContactType
from archub.library.models import Unit, Action, TaskCategory, Material, Task
from archub.budgets.models import Budget, BudgetTask
from archub.sitelogs.models import SiteLog
from archub.finances.models import Wallet, OrganizationWallet, MovementConcept, Movement
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='user', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_admin(username=None):
        return TestDataFactory.create_user(username=username, role='admin')

    @staticmethod
    def create_plan(name=None, price=None, is_active=True):
        if not name:
            name = f'Plan_{TestDataFactory.random_string(6)}'
        return Plan.objects.create(
            name=name,
            price=price if price is not None else Decimal('10.00'),
            is_active=is_active
        )

    @staticmethod
    def create_organization(owner=None, name=None, members=()):
        """Create a test organization; the owner and ``members`` get memberships"""
        if not owner:
            owner = TestDataFactory.create_user()
        if not name:
            name = f'Org_{TestDataFactory.random_string(6)}'
        organization = Organization.objects.create(name=name, owner=owner)
        OrganizationMember.objects.create(organization=organization, user=owner, role='owner')
        for member in members:
            OrganizationMember.objects.create(organization=organization, user=member, role='member')
        return organization

    @staticmethod
    def create_project(organization=None, name=None, created_by=None, status='active', budget=None, progress=0):
        """Create a test project"""
        if not organization:
            organization = TestDataFactory.create_organization()
        if not name:
            name = f'Project_{TestDataFactory.random_string(6)}'
        return Project.objects.create(
            organization=organization,
            name=name,
            created_by=created_by,
            status=status,
            budget=budget,
            progress=progress
        )

    @staticmethod
    def create_contact_type(name=None):
        if not name:
            name = f'Type_{TestDataFactory.random_string(6)}'
        return ContactType.objects.create(name=name)

    @staticmethod
    def create_contact(organization=None, first_name=None, last_name=None, types=()):
        """Create a test contact, optionally linked to contact types"""
        if not organization:
            organization = TestDataFactory.create_organization()
        contact = Contact.objects.create(
            organization=organization,
            first_name=first_name or f'Nombre_{TestDataFactory.random_string(4)}',
            last_name=last_name
        )
        for contact_type in types:
            contact.type_links.create(type=contact_type)
        return contact

    @staticmethod
    def create_unit(name=None):
        if not name:
            name = f'U_{TestDataFactory.random_string(6)}'
        return Unit.objects.create(name=name)

    @staticmethod
    def create_action(name=None):
        return Action.objects.create(name=name or f'Action_{TestDataFactory.random_string(6)}')

    @staticmethod
    def create_task_category(name=None, code=None, parent=None, position=None):
        """Create a category at the end of its level unless ``position`` is given"""
        if position is None:
            position = TaskCategory.objects.filter(parent=parent).count() + 1
        return TaskCategory.objects.create(
            code=code or TestDataFactory.random_string(4).upper(),
            name=name or f'Category_{TestDataFactory.random_string(6)}',
            parent=parent,
            position=position
        )

    @staticmethod
    def create_material(name=None, unit=None, cost=None):
        return Material.objects.create(
            name=name or f'Material_{TestDataFactory.random_string(6)}',
            unit=unit,
            cost=cost if cost is not None else Decimal('100.00')
        )

    @staticmethod
    def create_task(name=None, unit_labor_price=None, unit_material_price=None, category=None, unit=None):
        """Create a catalog task"""
        return Task.objects.create(
            name=name or f'Task_{TestDataFactory.random_string(6)}',
            unit_labor_price=unit_labor_price if unit_labor_price is not None else Decimal('100.00'),
            unit_material_price=unit_material_price if unit_material_price is not None else Decimal('0.00'),
            category=category,
            unit=unit
        )

    @staticmethod
    def create_budget(project=None, name=None, created_by=None, status='draft'):
        if not project:
            project = TestDataFactory.create_project()
        return Budget.objects.create(
            project=project,
            name=name or f'Budget_{TestDataFactory.random_string(6)}',
            created_by=created_by,
            status=status
        )

    @staticmethod
    def create_budget_task(budget, task=None, quantity=None):
        if not task:
            task = TestDataFactory.create_task()
        return BudgetTask.objects.create(
            budget=budget,
            task=task,
            quantity=quantity if quantity is not None else Decimal('1.000')
        )

    @staticmethod
    def create_site_log(project=None, log_date=None, created_by=None, weather='Soleado', comments=None):
        if not project:
            project = TestDataFactory.create_project()
        return SiteLog.objects.create(
            project=project,
            log_date=log_date or timezone.now().date(),
            created_by=created_by,
            weather=weather,
            comments=comments
        )

    @staticmethod
    def create_movement_concepts():
        """Create the three movement types with one category each"""
        concepts = {}
        for type_name, category_name in (
            ('Ingresos', 'Pago de Cliente'),
            ('Egresos', 'Materiales de Construcción'),
            ('Ajustes', 'Corrección'),
        ):
            root = MovementConcept.objects.create(name=type_name)
            concepts[type_name] = root
            concepts[category_name] = MovementConcept.objects.create(name=category_name, parent=root)
        return concepts

    @staticmethod
    def create_wallet(name=None, organization=None, is_default=False, is_active=True):
        wallet = Wallet.objects.create(
            name=name or f'Wallet_{TestDataFactory.random_string(6)}',
            is_active=is_active
        )
        if organization:
            OrganizationWallet.objects.create(organization=organization, wallet=wallet, is_default=is_default)
        return wallet

    @staticmethod
    def create_movement(project, concept, amount=None, currency='ARS', wallet=None, description=None, created_at_local=None):
        """Create a test movement"""
        return Movement.objects.create(
            project=project,
            concept=concept,
            amount=amount if amount is not None else Decimal('100.00'),
            currency=currency,
            wallet=wallet,
            description=description,
            created_at_local=created_at_local or timezone.now()
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()

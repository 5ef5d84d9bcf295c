"""
Create or repair the initial ADMIN account.

Usage:
    python manage.py ensure_admin_user --email admin@clinic.gr --password 'Secret123'

Idempotent: an existing account gets its password reset, is re-activated and
is given the ADMIN role.
"""
import os

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from apps.authz.models import RoleChoices, User
from apps.authz.services import assign_role


class Command(BaseCommand):
    help = 'Create or update the initial ADMIN user'

    def add_arguments(self, parser):
        parser.add_argument('--email', default=os.environ.get('ADMIN_EMAIL'))
        parser.add_argument('--password', default=os.environ.get('ADMIN_PASSWORD'))
        parser.add_argument('--first-name', default='System')
        parser.add_argument('--last-name', default='Administrator')

    @transaction.atomic
    def handle(self, *args, **options):
        email = options['email']
        password = options['password']
        if not email or not password:
            raise CommandError('--email and --password (or ADMIN_EMAIL / ADMIN_PASSWORD) are required')

        user = User.objects.filter(email=User.objects.normalize_email(email)).first()
        if user is None:
            user = User.objects.create_user(
                email=email,
                password=password,
                first_name=options['first_name'],
                last_name=options['last_name'],
                is_staff=True,
                is_superuser=True,
            )
            self.stdout.write(self.style.SUCCESS(f'Created user "{user.email}"'))
        else:
            user.set_password(password)
            user.is_active = True
            user.is_staff = True
            user.is_superuser = True
            user.save()
            self.stdout.write(self.style.WARNING(f'Updated existing user "{user.email}"'))

        assign_role(user, RoleChoices.ADMIN)
        self.stdout.write(self.style.SUCCESS(f'Role {RoleChoices.ADMIN} assigned to "{user.email}"'))

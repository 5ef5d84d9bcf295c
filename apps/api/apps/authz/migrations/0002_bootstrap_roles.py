# Bootstrap the fixed role rows

from django.db import migrations

ROLE_NAMES = ['ADMIN', 'DOCTOR', 'ASSISTANT']


def create_roles(apps, schema_editor):
    """Idempotent: safe to run on a database that already has the roles."""
    Role = apps.get_model('authz', 'Role')
    for name in ROLE_NAMES:
        Role.objects.get_or_create(name=name)


def remove_unassigned_roles(apps, schema_editor):
    Role = apps.get_model('authz', 'Role')
    UserRole = apps.get_model('authz', 'UserRole')
    for role in Role.objects.filter(name__in=ROLE_NAMES):
        if not UserRole.objects.filter(role=role).exists():
            role.delete()


class Migration(migrations.Migration):

    dependencies = [
        ('authz', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(create_roles, remove_unassigned_roles),
    ]

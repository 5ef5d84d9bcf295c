from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Role, User, UserAuditLog, UserRole


class UserRoleInline(admin.TabularInline):
    model = UserRole
    extra = 0
    max_num = 1
    autocomplete_fields = ['role']


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['email', 'first_name', 'last_name', 'is_active', 'is_staff', 'created_at']
    list_filter = ['is_active', 'is_staff', 'user_roles__role__name']
    search_fields = ['email', 'first_name', 'last_name']
    readonly_fields = ['id', 'created_at', 'updated_at', 'last_login']
    inlines = [UserRoleInline]

    fieldsets = (
        (None, {'fields': ('id', 'email', 'password')}),
        ('Personal Info', {'fields': ('first_name', 'last_name')}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser')}),
        ('Important dates', {'fields': ('last_login', 'created_at', 'updated_at')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2', 'first_name', 'last_name', 'is_active'),
        }),
    )

    ordering = ['-created_at']


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at']
    search_fields = ['name']
    readonly_fields = ['id', 'created_at']


@admin.register(UserAuditLog)
class UserAuditLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'action', 'actor_user', 'target_user']
    list_filter = ['action', 'created_at']
    search_fields = ['actor_user__email', 'target_user__email']
    readonly_fields = ['id', 'created_at', 'actor_user', 'target_user', 'action', 'metadata']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

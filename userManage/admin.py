from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from userManage.models import Major, User


@admin.register(User)
class StudentUserAdmin(UserAdmin):
    list_display = ('student_id', 'name', 'email', 'major', 'cohort', 'is_verified', 'is_staff')
    list_filter = ('is_verified', 'is_staff', 'groups', 'major')
    search_fields = ('student_id', 'name', 'email')
    ordering = ('student_id',)
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('student_id', 'username', 'name', 'email', 'password1', 'password2'),
        }),
    )
    fieldsets = UserAdmin.fieldsets + (
        ('Student', {'fields': ('student_id', 'name', 'cohort', 'major', 'is_verified')}),
    )


@admin.register(Major)
class MajorAdmin(admin.ModelAdmin):
    search_fields = ('name',)

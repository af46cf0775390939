from django.contrib import admin

from team.models import PendingJoinRequest, Team, TeamMembership


class TeamMembershipInline(admin.TabularInline):
    model = TeamMembership
    extra = 0


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ('name', 'competition', 'leader', 'status', 'open_slots', 'max_members')
    list_filter = ('status',)
    inlines = [TeamMembershipInline]


admin.site.register(PendingJoinRequest)

from django.contrib import admin

from competitions.models import Competition, CompetitionParticipant, CompetitionResult


@admin.register(Competition)
class CompetitionAdmin(admin.ModelAdmin):
    list_display = ('title', 'category', 'level', 'type', 'start_date', 'end_date')
    list_filter = ('level', 'type', 'category')
    search_fields = ('title',)


@admin.register(CompetitionParticipant)
class CompetitionParticipantAdmin(admin.ModelAdmin):
    list_display = ('user', 'competition', 'team', 'is_leader', 'reimburse_status', 'joined_at')
    list_filter = ('is_leader', 'reimburse_status')


admin.site.register(CompetitionResult)

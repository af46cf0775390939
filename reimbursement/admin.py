from django.contrib import admin

from reimbursement.models import Reimbursement


@admin.register(Reimbursement)
class ReimbursementAdmin(admin.ModelAdmin):
    list_display = ('name', 'user', 'competition', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('name', 'user__student_id', 'card_number')
    readonly_fields = ('status',)
